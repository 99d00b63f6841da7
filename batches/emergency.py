from olybatch.utils.batch import emergency_batch


@emergency_batch
def shutdown_minting(batch, env, args):
    emergency = env.get_address_not_zero("olympus.policies.Emergency")
    batch.add_call(emergency, "shutdownMinting()")


@emergency_batch
def restart_minting(batch, env, args):
    emergency = env.get_address_not_zero("olympus.policies.Emergency")
    batch.add_call(emergency, "restartMinting()")
