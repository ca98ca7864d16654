import random
import re
from typing import Any, Dict, Optional

from constants import D20_MAX, D20_MIN

_TABLE_KEY_RE = re.compile(r"^\d+(-\d+)?$")


def _result(success: bool, result: str, key: str = "") -> Dict[str, Any]:
    return {"success": success, "result": result, "key": key}


def roll_d20(rng: Optional[random.Random] = None) -> int:
    return (rng or random).randint(D20_MIN, D20_MAX)


def roll_in_range(roll: int, key: str) -> bool:
    if "-" not in key:
        return roll == int(key)
    low, high = key.split("-", 1)
    return int(low) <= roll <= int(high)


def result_for_table(table: Optional[Dict[str, Any]], roll: int) -> Dict[str, Any]:
    """Look up a d20 roll in a roll table.

    Tables are either flat (one key per face, ``"1"`` .. ``"20"``) or ranged
    (``"1"``, ``"2-5"``, ``"6-10"``, ...). Failures come back as
    ``success: False`` with a message rather than raising.
    """
    if not table:
        return _result(False, "Table data is undefined")
    if isinstance(roll, bool) or not isinstance(roll, int) or roll < D20_MIN or roll > D20_MAX:
        return _result(False, f"Roll must be between {D20_MIN} and {D20_MAX}, got {roll}")

    keys = [k for k in table if isinstance(k, str) and _TABLE_KEY_RE.match(k)]

    if len(keys) == D20_MAX and all("-" not in k for k in keys):
        key = str(roll)
        value = table.get(key)
        if isinstance(value, str) and value:
            return _result(True, value, key)
        return _result(False, f"No result found for roll {roll} in flat table")

    exact = table.get(str(roll))
    if isinstance(exact, str) and exact:
        return _result(True, exact, str(roll))

    for key in keys:
        if "-" in key and roll_in_range(roll, key):
            value = table[key]
            if isinstance(value, str) and value:
                return _result(True, value, key)

    return _result(False, f"No result found for roll {roll}")
