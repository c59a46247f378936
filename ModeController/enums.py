from enum import Enum, auto

class BlockAction(Enum):
    """What the focus controller did with a navigation"""
    ALLOWED = auto()
    REDIRECTED = auto()
    BYPASSED = auto()   # one-shot override consumed
    IGNORED = auto()    # not a web page or no metadata yet
