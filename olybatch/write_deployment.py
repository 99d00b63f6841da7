import click

from config.Chains import CHAIN_IDS
from olybatch.run import ENV_FILE
from olybatch.utils import log
from olybatch.utils.env_file import EnvFile, VERSIONS


@click.command()
@click.option("--chain", required=True, type=click.Choice(sorted(CHAIN_IDS.keys()), case_sensitive=False), help="Chain the deployment belongs to.")
@click.option("--key", required=True, help="Dotted key, e.g. `olympus.policies.Heart`.")
@click.option("--value", required=True, help="Value to store, usually a contract address.")
@click.option("--version", default="current", type=click.Choice(VERSIONS), help="Snapshot to write to. Defaults to `current`.")
@click.option("--file", "env_path", default=ENV_FILE, help=f"Environment file. Defaults to `{ENV_FILE}`.")
def cli(chain, key, value, version, env_path):
    """Writes a deployment address or parameter into the environment file."""
    log.info(f"Writing {version}.{chain}.{key} = {value} to {env_path}")
    EnvFile.write(env_path, chain, key, value, version=version)
    log.h3("Environment file updated")


if __name__ == "__main__":
    cli()
