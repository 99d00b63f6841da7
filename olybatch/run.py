import os

import boa
import click
import dotenv

from config.Chains import CHAIN_IDS
from olybatch.utils import log
from olybatch.utils.batch_helpers import check_rpc_chain, get_account
from olybatch.utils.batch_runner import BatchRunner
from olybatch.utils.dispatch_args import DispatchArgs
from olybatch.utils.dispatcher import Dispatcher
from olybatch.utils.simulator import ForkSimulator


BATCH_SCRIPTS_DIR = "./batches"
ENV_FILE = "./config/env.json"


CLICK_PROMPTS = {
    "contract": {
        "prompt": "Batch contract (file in ./batches)",
        "default": "",
        "help": "Name of the batch script, e.g. `kernel` for ./batches/kernel.py.",
    },
    "function": {
        "prompt": "Batch function",
        "default": "",
        "help": "Entry point to run, e.g. `install_module`.",
    },
    "chain": {
        "prompt": "Chain name",
        "default": "mainnet",
        "help": "Chain the batch targets; also selects the addresses read from the env file. Defaults to `mainnet`.",
        "type": click.Choice(sorted(CHAIN_IDS.keys()), case_sensitive=False),
    },
    "rpc": {
        "default": "",
        "help": "RPC url used for the simulation fork. Defaults to `RPC_URL` from the .env file.",
    },
    "account": {
        "prompt": "Proposer account name",
        "default": "",
        "help": "Account whose key is read from `<ACCOUNT>_PRIVATE_KEY`. Required when proposing or running without a multisig, unless --ledger is given.",
        "depends": {
            "broadcast": True,
            "testnet": False,
            "ledger": -1,
        },
    },
    "args": {
        "prompt": "Args file",
        "default": "",
        "help": "JSON file with arguments for the batch. Defaults to none.",
        "optional": True,
    },
}


def param_prompt(ctx, param, value):
    param_config = CLICK_PROMPTS.get(param.name)
    if param_config is None:
        return value

    default_val = param_config.get("default")
    prompt = param_config.get("prompt")
    optional = param_config.get("optional", False)

    if value != default_val:
        return value

    if prompt is None or ctx.params.get("silent") or optional:
        return value

    depends = param_config.get("depends")
    if depends is not None:
        # every dependency must already be parsed and match
        for key, expected in depends.items():
            if ctx.params.get(key) != expected:
                return value

    return click.prompt(
        f"{prompt} --{param.name.replace('_', '-')}",
        default=default_val,
        type=param_config.get("type"),
    )


def proposer_account(account, ledger):
    if account and ledger != -1:
        raise click.UsageError("Cannot specify both --account and --ledger. Choose one.")
    if ledger != -1:
        from olybatch.utils.ledger_account import LedgerAccount

        return LedgerAccount(ledger)
    if account:
        return get_account(account)
    return None


@click.command()
@click.option("--silent", is_flag=True, default=False, is_eager=True, help="Run command without prompts.")
@click.option("--broadcast", is_flag=True, default=False, is_eager=True, help="Submit the batch. Without it the batch is only simulated.")
@click.option("--testnet", is_flag=True, default=False, is_eager=True, help="Replay the batch on a Tenderly virtual testnet instead of proposing it.")
@click.option("--ledger", default=-1, type=int, is_eager=True, help="Ledger mnemonic index to propose with (default: -1 = Not using Ledger)")
@click.option("--multisig/--no-multisig", default=True, is_eager=True, help="Send the batch through the signer's Safe (default). With --no-multisig each action is sent from --account or --ledger.")
@click.option("--env-file", default=".env", help="Dotenv file with RPC_URL, keys and Tenderly settings. Defaults to `.env`.")
@click.option(
    "--contract", "-c",
    default=CLICK_PROMPTS["contract"]["default"],
    help=CLICK_PROMPTS["contract"]["help"],
    callback=param_prompt,
)
@click.option(
    "--function", "-f",
    default=CLICK_PROMPTS["function"]["default"],
    help=CLICK_PROMPTS["function"]["help"],
    callback=param_prompt,
)
@click.option(
    "--chain",
    default=CLICK_PROMPTS["chain"]["default"],
    help=CLICK_PROMPTS["chain"]["help"],
    type=CLICK_PROMPTS["chain"]["type"],
    callback=param_prompt,
)
@click.option(
    "--rpc",
    default=CLICK_PROMPTS["rpc"]["default"],
    help=CLICK_PROMPTS["rpc"]["help"],
)
@click.option(
    "--account", "-a",
    default=CLICK_PROMPTS["account"]["default"],
    help=CLICK_PROMPTS["account"]["help"],
    callback=param_prompt,
)
@click.option(
    "--args",
    default=CLICK_PROMPTS["args"]["default"],
    help=CLICK_PROMPTS["args"]["help"],
    callback=param_prompt,
)
def cli(silent, broadcast, testnet, ledger, multisig, env_file, contract, function, chain, rpc, account, args):
    """
    Runs a governance batch.

    Batch scripts live in `./batches`. Each entry point queues contract calls
    for one multisig (DAO, Policy or Emergency), using addresses from
    `./config/env.json` for the selected chain.

    Every queued call is simulated on a fork of the chain as the multisig.
    Without `--broadcast` that simulation is all that happens. With it, the
    whole batch is proposed to the multisig as one Safe transaction, or with
    `--testnet` each call is replayed on a Tenderly virtual testnet.

    For deployments not administered by a multisig, `--no-multisig` simulates
    the batch as the given account and, with `--broadcast`, sends each call
    from it as its own transaction.
    """
    dotenv.load_dotenv(env_file)

    if not contract or not function:
        raise click.UsageError("Both --contract and --function are required.")

    final_rpc = rpc or os.environ.get("RPC_URL", "")
    if not final_rpc:
        raise click.UsageError("No RPC URL provided. Pass --rpc or set RPC_URL in the .env file.")

    if testnet and not multisig:
        raise click.UsageError("--testnet replays a multisig batch and cannot be used with --no-multisig.")

    needs_account = not multisig or (broadcast and not testnet)
    proposer = proposer_account(account, ledger) if needs_account else None
    if needs_account and proposer is None:
        action = "run a batch without a multisig" if not multisig else "propose a batch"
        raise click.UsageError(f"Must specify either --account or --ledger to {action}.")

    dispatch_args = DispatchArgs(
        chain,
        send=broadcast,
        testnet=testnet,
        proposer=proposer,
        rpc=final_rpc,
        multisig=multisig,
    )

    log.h1("Governance Batch")
    log.summary("Summary", [
        ("Contract name", contract),
        ("Function name", function),
        ("Chain", chain),
        ("RPC at URL", final_rpc),
        ("Proposer", proposer.address if proposer else "(none)"),
        ("Args file", args or "(none)"),
        ("Testnet", testnet),
        ("Multisig", multisig),
        ("Broadcasting", broadcast),
    ])

    runner = BatchRunner(
        BATCH_SCRIPTS_DIR,
        ENV_FILE,
        dispatcher=Dispatcher(open_browser=not silent),
        simulator_factory=ForkSimulator,
    )

    if not testnet:
        # virtual testnets may run under their own chain id
        check_rpc_chain(final_rpc, chain)

    with boa.fork(final_rpc, allow_dirty=True):
        runner.run(dispatch_args, contract, function, args or None)

    log.info("")
    log.info("Batch complete")


if __name__ == "__main__":
    cli()
