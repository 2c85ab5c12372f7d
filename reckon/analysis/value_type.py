from enum import Enum
from typing import Union


class ValueType(Enum):
    """
    Data types a Redis key can hold.

    The values match what Redis returns from the TYPE command, so a
    reply can be turned into a ValueType directly.

    - UNKNOWN: anything this package does not sample (including "none"
      for a key that vanished, and "stream"). Seeing it aborts a run.
    """
    STRING = "string"
    SET = "set"
    SORTED_SET = "zset"
    HASH = "hash"
    LIST = "list"
    UNKNOWN = "unknown"

    @classmethod
    def from_reply(cls, reply: Union[bytes, str, None]) -> "ValueType":
        """
        Convert a raw TYPE reply into a ValueType.

        Args:
            reply: The reply as returned by the client (bytes or str)

        Returns:
            The matching ValueType, or UNKNOWN if the reply is not recognized
        """
        if reply is None:
            return cls.UNKNOWN
        if isinstance(reply, bytes):
            reply = reply.decode("utf-8", errors="replace")
        try:
            return cls(reply.strip().lower())
        except ValueError:
            return cls.UNKNOWN
