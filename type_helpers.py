import logging
import re

logger = logging.getLogger(__name__)

# canonical decimal integer, no sign other than '-' and no leading zeros
_INT_PATTERN = re.compile(r"-?(0|[1-9][0-9]*)")


def is_int_like(value) -> bool:
    """
    Check if value is an int, or a string spelling one in canonical form.
    """
    if isinstance(value, bool):
        return False
    if isinstance(value, int):
        return True
    if isinstance(value, str):
        return _INT_PATTERN.fullmatch(value) is not None and value != "-0"
    return False


def to_int(value) -> int:
    """
    Validator that turns an int-like value into an int.

    Parameters
    ----------
    value : str or int
        Decoded values are always strings, so "42" is accepted.
    """
    if not is_int_like(value):
        raise ValueError("Not an integer: {!r}".format(value))
    return int(value)


def check_and_convert(mapping, validators) -> bool:
    """
    Run one validator per key over mapping and store the converted values.

    The keys of mapping and validators must be the same and in the same
    order. Every validator takes a value and returns the converted value,
    or raises ValueError / TypeError to reject it. The caller's mapping is
    only updated when every validator succeeds.

    Parameters
    ----------
    mapping : dict
        The values to check. Updated in place on success.
    validators : dict
        Callables keyed like mapping.

    Returns
    -------
    bool
        True if every key matched and every validator accepted its value.
    """
    if not isinstance(mapping, dict) or not isinstance(validators, dict):
        return False

    if list(mapping.keys()) != list(validators.keys()):
        logger.debug(
            "Key mismatch: got %s, expected %s", list(mapping), list(validators)
        )
        return False

    converted = {}
    for key, validate in validators.items():
        try:
            converted[key] = validate(mapping[key])
        except (ValueError, TypeError) as e:
            logger.debug("Validator for %r rejected %r: %s", key, mapping[key], e)
            return False

    mapping.update(converted)
    return True
