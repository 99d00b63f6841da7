from config.Chains import KernelAction, ZERO_ADDRESS
from olybatch.utils.batch import dao_batch
from olybatch.utils.errors import PreconditionError


def _module_keycode(batch, module):
    return batch.call(module, "KEYCODE()", returns=["bytes5"])


def _installed_module(batch, kernel, keycode):
    return batch.call(kernel, "getModuleForKeycode(bytes5)", keycode, returns=["address"])


def _execute_action(batch, kernel, action, target):
    batch.add_call(kernel, "executeAction(uint8,address)", int(action), target)


@dao_batch
def install_module(batch, env, args):
    """
    Installs the module named by the `module` env key in the args file.
    Skips the action if the Kernel already points to it.
    """
    kernel = env.get_address_not_zero("olympus.Kernel")
    module = env.get_address_not_zero(args.get_string("module"))

    keycode = _module_keycode(batch, module)
    installed = _installed_module(batch, kernel, keycode)
    if installed.lower() == module.lower():
        batch.log.skip(f"Module {module} already installed")
        return
    if installed != ZERO_ADDRESS:
        raise PreconditionError(
            f"Keycode {keycode!r} is already installed at {installed}, use upgrade_module"
        )

    _execute_action(batch, kernel, KernelAction.INSTALL_MODULE, module)


@dao_batch
def upgrade_module(batch, env, args):
    kernel = env.get_address_not_zero("olympus.Kernel")
    module = env.get_address_not_zero(args.get_string("module"))

    keycode = _module_keycode(batch, module)
    if _installed_module(batch, kernel, keycode) == ZERO_ADDRESS:
        raise PreconditionError(f"Keycode {keycode!r} is not installed, use install_module")

    _execute_action(batch, kernel, KernelAction.UPGRADE_MODULE, module)


@dao_batch
def activate_policy(batch, env, args):
    # one or more env keys under `policies`, activated in order
    kernel = env.get_address_not_zero("olympus.Kernel")
    for key in args.get("policies"):
        policy = env.get_address_not_zero(key)
        if batch.call(policy, "isActive()", returns=["bool"]):
            batch.log.skip(f"{key} already active")
            continue
        _execute_action(batch, kernel, KernelAction.ACTIVATE_POLICY, policy)


@dao_batch
def deactivate_policy(batch, env, args):
    kernel = env.get_address_not_zero("olympus.Kernel")
    for key in args.get("policies"):
        # previous deployments are looked up in the `last` snapshot first
        policy = env.get_address_not_zero(key, version="last", fallback="current")
        if not batch.call(policy, "isActive()", returns=["bool"]):
            batch.log.skip(f"{key} already inactive")
            continue
        _execute_action(batch, kernel, KernelAction.DEACTIVATE_POLICY, policy)
