import json
import logging
import re
from pathlib import Path
from typing import Dict, List, Optional, Sequence

import pandas as pd

from .config import DATA_DIR, get_game
from .errors import DataError
from .models import DrawRecord, GeneratedCombination, UnsuccessfulCombination

logger = logging.getLogger(__name__)

_NUMBER_COLUMN = re.compile(r"^n(\d+)$")
_SEPARATORS = re.compile(r"[\s,;\-]+")


class LotteryDataManager:
    """Loads draw history and unsuccessful combinations for one game from CSV/JSON files."""

    def __init__(self, game_type, history_path=None, unsuccessful_path=None):
        self.game = get_game(game_type)
        self.history_path = Path(history_path) if history_path else DATA_DIR / f"{self.game.id}.csv"
        self.unsuccessful_path = Path(unsuccessful_path) if unsuccessful_path else None
        self.data: Optional[pd.DataFrame] = None

    def load_data(self) -> pd.DataFrame:
        """Read the history file into a DataFrame (one row per draw, or per draw and wheel)."""
        if self.data is not None:
            return self.data

        path = self.history_path
        try:
            if path.suffix.lower() == ".json":
                with open(path, "r") as f:
                    frame = pd.DataFrame(json.load(f))
            else:
                frame = pd.read_csv(path)
        except FileNotFoundError as e:
            logger.error(f"History file not found: {path}")
            raise DataError(f"History file not found: {path}") from e
        except (ValueError, pd.errors.ParserError) as e:
            logger.error(f"Error loading history: {str(e)}")
            raise DataError(f"Could not parse history file {path}: {e}") from e

        if frame.empty:
            self.data = pd.DataFrame(columns=["date", "numbers"])
            logger.warning(f"History file {path} holds no draws.")
            return self.data

        if "date" not in frame.columns:
            raise DataError(f"History file {path} has no 'date' column")

        frame = frame.copy()
        frame["numbers"] = pd.Series(self._numbers_column(frame), index=frame.index, dtype=object)
        frame["date"] = pd.to_datetime(frame["date"], errors="coerce")
        undated = int(frame["date"].isna().sum())
        if undated:
            logger.warning(f"Dropping {undated} rows with unreadable dates.")
            frame = frame.dropna(subset=["date"])

        frame = frame.sort_values("date", ascending=False, kind="stable").reset_index(drop=True)
        self.data = frame
        logger.info(f"Successfully loaded {len(frame)} rows from {path}.")
        return self.data

    def _numbers_column(self, frame: pd.DataFrame) -> List[List[int]]:
        number_columns = sorted(
            (c for c in frame.columns if _NUMBER_COLUMN.match(str(c))),
            key=lambda c: int(_NUMBER_COLUMN.match(str(c)).group(1)),
        )
        if number_columns:
            return [
                [int(v) for v in row if pd.notna(v)]
                for row in frame[number_columns].itertuples(index=False)
            ]
        if "numbers" in frame.columns:
            return [self._parse_numbers(v) for v in frame["numbers"]]
        if "wheels" in frame.columns:
            return [[] for _ in range(len(frame))]
        raise DataError(f"History file {self.history_path} has no number columns (n1..nk or 'numbers')")

    @staticmethod
    def _parse_numbers(value) -> List[int]:
        if isinstance(value, (list, tuple)):
            return [int(v) for v in value]
        if value is None or (isinstance(value, float) and pd.isna(value)):
            return []
        try:
            return [int(v) for v in _SEPARATORS.split(str(value).strip()) if v]
        except ValueError as e:
            raise DataError(f"Unreadable numbers value: {value!r}") from e

    @staticmethod
    def _optional_int(row: Dict, key: str) -> Optional[int]:
        value = row.get(key)
        if value is None or pd.isna(value):
            return None
        try:
            return int(value)
        except (TypeError, ValueError) as e:
            raise DataError(f"Unreadable {key} value: {value!r}") from e

    def _valid(self, numbers: Sequence[int]) -> bool:
        return (len(numbers) == self.game.numbers_to_select
                and len(set(numbers)) == len(numbers)
                and all(1 <= n <= self.game.max_number for n in numbers))

    def load_history(self) -> List[DrawRecord]:
        """
        Draws as DrawRecord objects, most recent first.

        Lotto files carry one row per wheel and date (a 'wheel' column) or a
        'wheels' mapping per draw; rows for the same date are merged. Rows whose
        numbers break the game rules are skipped with a warning.
        """
        frame = self.load_data()
        draws: Dict = {}
        skipped = 0

        for row in frame.to_dict("records"):
            key = row["date"]
            wheel = row.get("wheel") if self.game.has_wheels else None
            if isinstance(wheel, float) and pd.isna(wheel):
                wheel = None

            record = draws.setdefault(key, {"numbers": (), "wheels": {}, "jolly": None, "superstar": None})
            numbers = row["numbers"]

            if isinstance(row.get("wheels"), dict):
                for name, values in row["wheels"].items():
                    values = self._parse_numbers(values)
                    if name in self.game.wheels and self._valid(values):
                        record["wheels"][name] = values
                    else:
                        skipped += 1
            if wheel:
                if wheel in self.game.wheels and self._valid(numbers):
                    record["wheels"][wheel] = numbers
                else:
                    skipped += 1
            elif numbers:
                if self._valid(numbers):
                    record["numbers"] = numbers
                else:
                    skipped += 1

            if self.game.has_secondary:
                record["jolly"] = record["jolly"] or self._optional_int(row, "jolly")
                record["superstar"] = record["superstar"] or self._optional_int(row, "superstar")

        if skipped:
            logger.warning(f"Skipped {skipped} rows that do not fit {self.game.name} rules.")

        history = [
            DrawRecord(date=key.date(), numbers=v["numbers"], jolly=v["jolly"],
                       superstar=v["superstar"], wheels=v["wheels"])
            for key, v in draws.items()
            if v["numbers"] or v["wheels"]
        ]
        logger.info(f"Loaded {len(history)} {self.game.name} draws.")
        return history

    def load_unsuccessful(self) -> List[UnsuccessfulCombination]:
        """User's unsuccessful combinations for this game; other games are ignored."""
        if self.unsuccessful_path is None:
            return []
        try:
            with open(self.unsuccessful_path, "r") as f:
                records = json.load(f)
        except FileNotFoundError as e:
            raise DataError(f"Unsuccessful combinations file not found: {self.unsuccessful_path}") from e
        except json.JSONDecodeError as e:
            raise DataError(f"Could not parse {self.unsuccessful_path}: {e}") from e

        if not isinstance(records, list):
            raise DataError(f"{self.unsuccessful_path} must contain a JSON list")

        combinations = []
        for record in records:
            if not isinstance(record, dict):
                raise DataError(f"{self.unsuccessful_path}: every entry must be a JSON object")
            if record.get("game_type", self.game.id) != self.game.id:
                continue
            kwargs = {k: record[k] for k in ("wheel", "jolly", "superstar", "strategy", "notes", "draw_date")
                      if record.get(k) is not None}
            combinations.append(UnsuccessfulCombination.create(self.game, record.get("numbers") or [], **kwargs))

        logger.info(f"Loaded {len(combinations)} unsuccessful combinations.")
        return combinations


def save_generated(combinations: Sequence[GeneratedCombination], path) -> Path:
    """Write generated combinations as a JSON list."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w") as f:
        json.dump([c.to_dict() for c in combinations], f, indent=4, default=str)
    logger.info(f"Saved {len(combinations)} combinations to {path}")
    return path
