"""Command name constants and the request builder.

Each member's value is the name sent on the wire.
"""

from __future__ import annotations

from enum import Enum

from .framing import Argument, encode


class Command(str, Enum):
    """Command names understood by the server."""

    # connection
    AUTH = "AUTH"
    ECHO = "ECHO"
    PING = "PING"
    QUIT = "QUIT"
    SELECT = "SELECT"

    # keys
    DEL = "DEL"
    EXISTS = "EXISTS"
    EXPIRE = "EXPIRE"
    EXPIREAT = "EXPIREAT"
    KEYS = "KEYS"
    PERSIST = "PERSIST"
    RENAME = "RENAME"
    TTL = "TTL"
    TYPE = "TYPE"

    # strings
    APPEND = "APPEND"
    DECR = "DECR"
    DECRBY = "DECRBY"
    GET = "GET"
    GETSET = "GETSET"
    INCR = "INCR"
    INCRBY = "INCRBY"
    MGET = "MGET"
    MSET = "MSET"
    SET = "SET"
    SETEX = "SETEX"
    SETNX = "SETNX"
    STRLEN = "STRLEN"

    # hashes
    HDEL = "HDEL"
    HEXISTS = "HEXISTS"
    HGET = "HGET"
    HGETALL = "HGETALL"
    HINCRBY = "HINCRBY"
    HKEYS = "HKEYS"
    HLEN = "HLEN"
    HMGET = "HMGET"
    HMSET = "HMSET"
    HSET = "HSET"
    HVALS = "HVALS"

    # lists
    BLPOP = "BLPOP"
    BRPOP = "BRPOP"
    LINDEX = "LINDEX"
    LLEN = "LLEN"
    LPOP = "LPOP"
    LPUSH = "LPUSH"
    LRANGE = "LRANGE"
    LREM = "LREM"
    LSET = "LSET"
    LTRIM = "LTRIM"
    RPOP = "RPOP"
    RPUSH = "RPUSH"

    # sets
    SADD = "SADD"
    SCARD = "SCARD"
    SISMEMBER = "SISMEMBER"
    SMEMBERS = "SMEMBERS"
    SPOP = "SPOP"
    SREM = "SREM"

    # sorted sets
    ZADD = "ZADD"
    ZCARD = "ZCARD"
    ZINCRBY = "ZINCRBY"
    ZRANGE = "ZRANGE"
    ZRANK = "ZRANK"
    ZREM = "ZREM"
    ZREVRANGE = "ZREVRANGE"
    ZSCORE = "ZSCORE"

    # pub/sub
    PSUBSCRIBE = "PSUBSCRIBE"
    PUBLISH = "PUBLISH"
    PUNSUBSCRIBE = "PUNSUBSCRIBE"
    SUBSCRIBE = "SUBSCRIBE"
    UNSUBSCRIBE = "UNSUBSCRIBE"

    # transactions
    DISCARD = "DISCARD"
    EXEC = "EXEC"
    MULTI = "MULTI"
    UNWATCH = "UNWATCH"
    WATCH = "WATCH"

    # server
    DBSIZE = "DBSIZE"
    FLUSHALL = "FLUSHALL"
    FLUSHDB = "FLUSHDB"
    INFO = "INFO"


def build_command(command: Command | str | bytes, *args: Argument) -> bytes:
    """Build a single request frame for a command and its arguments."""
    return encode(command, args)
