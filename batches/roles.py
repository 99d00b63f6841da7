from olybatch.utils.batch import dao_batch
from olybatch.utils.batch_helpers import to_bytes32


def _role_assignments(env, args):
    """
    Reads `roles` from the args file: a list of `{"role": ..., "to": ...}`
    where `to` is an address or an env key such as `olympus.policies.Heart`.
    """
    assignments = []
    for index in range(len(args.get("roles"))):
        role = args.get_string(f"roles.{index}.role")
        to = args.get_string(f"roles.{index}.to")
        if to.startswith("0x"):
            wallet = args.get_address(f"roles.{index}.to")
        else:
            wallet = env.get_address_not_zero(to)
        assignments.append((role, wallet))
    return assignments


def _has_role(batch, roles, wallet, role):
    return batch.call(roles, "hasRole(address,bytes32)", wallet, to_bytes32(role), returns=["bool"])


@dao_batch
def grant_roles(batch, env, args):
    roles_admin = env.get_address_not_zero("olympus.policies.RolesAdmin")
    roles = env.get_address_not_zero("olympus.modules.OlympusRoles")

    for role, wallet in _role_assignments(env, args):
        if _has_role(batch, roles, wallet, role):
            batch.log.skip(f"{wallet} already has role {role}")
            continue
        batch.add_call(roles_admin, "grantRole(bytes32,address)", to_bytes32(role), wallet)


@dao_batch
def revoke_roles(batch, env, args):
    roles_admin = env.get_address_not_zero("olympus.policies.RolesAdmin")
    roles = env.get_address_not_zero("olympus.modules.OlympusRoles")

    for role, wallet in _role_assignments(env, args):
        if not _has_role(batch, roles, wallet, role):
            batch.log.skip(f"{wallet} does not have role {role}")
            continue
        batch.add_call(roles_admin, "revokeRole(bytes32,address)", to_bytes32(role), wallet)
