import sys
import logging
import os
from kv_codec import encode, decode, KVCodecError

logger = logging.getLogger(__name__)

# log to a file
log_file = "logs/kv_tool.log"

usage = (
    "usage: kv_tool.py encode KEY VALUE [KEY VALUE ...]\n"
    "       kv_tool.py decode DOCUMENT"
)


class UsageError(Exception):
    """
    The command line arguments did not match the usage text.
    """


def setup_logging() -> None:
    """
    Set up file logging for the command line tool.
    """
    # make sure the logs directory exists
    os.makedirs(os.path.dirname(log_file), exist_ok=True)

    logging.basicConfig(
        filename=log_file,
        level=logging.INFO,
        format="%(asctime)s - %(levelname)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )


def display_escape(s: str) -> str:
    # tabs, newlines and backslashes are written as escapes so each entry stays on one line
    return s.encode("unicode_escape").decode("ascii")


def run_encode(args) -> str:
    """
    Encode KEY VALUE pairs given on the command line.

    Parameters
    ----------
    args : list of str
        Alternating keys and values.
    """
    if len(args) == 0 or len(args) % 2 != 0:
        raise UsageError("Expected KEY VALUE pairs")
    mapping = {}
    for i in range(0, len(args), 2):
        mapping[args[i]] = args[i + 1]
    result = encode(mapping)
    logger.info("Encoded %d entries", len(mapping))
    return result


def run_decode(args) -> str:
    """
    Decode a single document into tab separated key/value lines.

    Keys and values are passed through display_escape(), so a tab or
    newline inside them never breaks the line format.

    Parameters
    ----------
    args : list of str
        Exactly one element, the document.
    """
    if len(args) != 1:
        raise UsageError("Expected exactly one DOCUMENT")
    obj = decode(args[0])
    logger.info("Decoded %d entries", len(obj))
    return "\n".join(
        display_escape(k) + "\t" + display_escape(v) for k, v in obj.items()
    )


def main(argv) -> int:
    """
    Dispatch on the first argument and print the result.

    Returns the exit status: 0 on success, 1 on bad usage, 2 on codec errors.
    """
    commands = {"encode": run_encode, "decode": run_decode}

    if len(argv) < 1 or argv[0] not in commands:
        print(usage, file=sys.stderr)
        return 1

    try:
        output = commands[argv[0]](argv[1:])
    except UsageError:
        print(usage, file=sys.stderr)
        return 1
    except KVCodecError as e:
        logger.error("%s failed: %s", argv[0], e)
        print("Error:", e, file=sys.stderr)
        return 2

    print(output)
    return 0


def console_main() -> None:
    setup_logging()
    sys.exit(main(sys.argv[1:]))


if __name__ == "__main__":
    console_main()
