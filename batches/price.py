from olybatch.utils.batch import policy_batch
from olybatch.utils.errors import PreconditionError


@policy_batch
def initialize_moving_average(batch, env, args):
    """
    Sets the moving average parameters on the price module and seeds it with
    historical observations from the args file.
    """
    price_config = env.get_address_not_zero("olympus.policies.OlympusPriceConfig")

    observations = args.get_uint_list("observations")
    duration = args.get_uint("movingAverageDuration")
    frequency = args.get_uint("observationFrequency")
    last_observation_time = args.get_uint("lastObservationTime")

    if frequency == 0 or duration % frequency != 0:
        raise PreconditionError("movingAverageDuration must be a multiple of observationFrequency")
    if len(observations) != duration // frequency:
        raise PreconditionError(
            f"Expected {duration // frequency} observations, got {len(observations)}"
        )

    batch.add_call(price_config, "changeObservationFrequency(uint48)", frequency)
    batch.add_call(price_config, "changeMovingAverageDuration(uint48)", duration)
    batch.add_call(price_config, "initialize(uint256[],uint48)", observations, last_observation_time)
