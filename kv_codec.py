import logging
import re

logger = logging.getLogger(__name__)

# characters that carry structure in an encoded document
ESCAPE_CHAR = "\\"
ENTRY_SEP = ","
PAIR_SEP = "="

# marker placed after a doubled backslash while decoding
SENTINEL = "@"


class KVCodecError(Exception):
    """
    Base class for everything the codec raises.
    """


class InvalidInput(KVCodecError, TypeError):
    """
    An argument was not a string, integer or mapping where one was required.
    """


class MalformedDocument(KVCodecError, ValueError):
    """
    A segment of an encoded document did not contain exactly one unescaped '='.
    """


def _as_text(value):
    # bool is an int subclass, reject it
    if isinstance(value, bool):
        raise InvalidInput("Type not encodable: " + str(type(value)))
    if isinstance(value, str):
        return value
    if isinstance(value, int):
        return str(value)
    raise InvalidInput("Type not encodable: " + str(type(value)))


def replace(patterns, replacements, value):
    """
    Replace every occurrence of each pattern in one pass over value.

    Output of one substitution is never rescanned, so replacing "\\" with
    "\\\\" and "," with "\\," does not double escape.

    Parameters
    ----------
    patterns : sequence of str
        Literal substrings to look for. Earlier patterns win when two match
        at the same position.
    replacements : sequence of str
        Replacement for the pattern at the same index.
    value : str or int
        The input. Integers are converted with str() first.
    """
    if len(patterns) != len(replacements):
        raise ValueError(
            "Got {} patterns but {} replacements".format(len(patterns), len(replacements))
        )
    text = _as_text(value)
    if not patterns:
        return text
    table = dict(zip(reversed(patterns), reversed(replacements)))
    regex = re.compile("|".join(re.escape(p) for p in patterns))
    return regex.sub(lambda m: table[m.group(0)], text)


def escape_string(value) -> str:
    # prefix '\', ',' and '=' with a backslash
    return replace(
        [ESCAPE_CHAR, ENTRY_SEP, PAIR_SEP],
        [ESCAPE_CHAR * 2, ESCAPE_CHAR + ENTRY_SEP, ESCAPE_CHAR + PAIR_SEP],
        value,
    )


def unescape_string(s: str) -> str:
    """
    Undo the sentinel insertion, then drop one backslash in front of any character.

    A lone trailing backslash has nothing to escape and is kept as is.
    """
    s = s.replace(ESCAPE_CHAR * 2 + SENTINEL, ESCAPE_CHAR * 2)
    result = []
    i = 0
    while i < len(s):
        if s[i] == ESCAPE_CHAR and i + 1 < len(s):
            result.append(s[i + 1])
            i += 2
        else:
            result.append(s[i])
            i += 1
    return "".join(result)


def split_unescaped(s: str, sep: str) -> list:
    """
    Split s on every sep that is not immediately preceded by a backslash.

    Only the previous character is looked at. Doubled backslashes must be
    marked with the sentinel beforehand so that "\\\\," still splits.

    Parameters
    ----------
    s : str
        The string to split.
    sep : str
        A single separator character.
    """
    pieces = []
    start = 0
    prev = None
    for i, ch in enumerate(s):
        if ch == sep and prev != ESCAPE_CHAR:
            pieces.append(s[start:i])
            start = i + 1
        prev = ch
    pieces.append(s[start:])
    return pieces


class KVCodec:
    """
    Encodes a flat mapping of strings into a single delimited string and back.

    The document format is

        document := "" | entry ("," entry)*
        entry    := escaped-key "=" escaped-value

    where '\\', ',' and '=' inside keys and values are each preceded by one
    extra backslash. The codec holds no state.
    """

    def encode(self, mapping) -> str:
        """
        Encode a mapping into a document.

        Parameters
        ----------
        mapping : dict
            Keys and values must be str or int. Entries are written in
            iteration order.
        """
        if not hasattr(mapping, "items"):
            raise InvalidInput("Expected a mapping, got " + str(type(mapping)))

        entries = []
        for k, v in mapping.items():
            try:
                entries.append(escape_string(k) + PAIR_SEP + escape_string(v))
            except InvalidInput:
                logger.debug("Rejected entry %r for encoding", k)
                raise
        return ENTRY_SEP.join(entries)

    def decode(self, s: str) -> dict:
        """
        Decode a document produced by encode().

        Doubled backslashes are marked with a sentinel before splitting so
        that an escaped backslash followed by a separator is not read as an
        escaped separator. Every segment must split into exactly one key and
        one value, otherwise nothing is returned.

        Parameters
        ----------
        s : str
            The encoded document. The empty string decodes to {}.
        """
        if not isinstance(s, str):
            raise InvalidInput("Expected a string, got " + str(type(s)))
        if s == "":
            return {}

        marked = s.replace(ESCAPE_CHAR * 2, ESCAPE_CHAR * 2 + SENTINEL)

        obj = {}
        for n, segment in enumerate(split_unescaped(marked, ENTRY_SEP)):
            pair = split_unescaped(segment, PAIR_SEP)
            if len(pair) != 2:
                logger.debug("Segment %d has %d unescaped '='", n, len(pair) - 1)
                raise MalformedDocument(
                    "Expected exactly one unescaped '=' in segment {} but found {}".format(
                        n, len(pair) - 1
                    )
                )
            key, value = pair
            # repeated keys keep their first position and take the last value
            obj[unescape_string(key)] = unescape_string(value)
        return obj


_codec = KVCodec()


def encode(mapping) -> str:
    return _codec.encode(mapping)


def decode(s: str) -> dict:
    return _codec.decode(s)


# names used by older callers
implode = encode
explode = decode
