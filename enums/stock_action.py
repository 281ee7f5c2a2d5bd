from enum import Enum


class StockAction(str, Enum):
    NONE = "none"
    COMMIT = "commit"
    RELEASE = "release"
