"""
Genetics Storage Module

The genetic optimizer persists two flat text files per optimizer key:

    <root>/<key>/<key>.population.txt
        One line per individual of the next generation: comma-separated weights,
        no header. The whole file is rewritten at every generation close.

    <root>/<key>/<key>.best.txt
        One line per closed generation, holding the best individual of that
        generation as a versioned JSON record:
            {"format": 1, "generation": 3, "weights": [...], "fitness": 0.75}
        Only the last line is read back on startup. Lines in the older
        "<generation>: <weights> # <fitness>" text format are still understood.

Every write replaces the target file atomically (write to a temporary file in
the same directory, then rename), so an interrupted write never leaves a
truncated file behind. A generation close stages both files before replacing
either, so the population and the best record never disagree. I/O errors are
not caught.

Classes:
    GenerationRecord: Best individual of one generation
    GeneticsStorage:  Reads and writes the population and best-of-generation files

Functions:
    weights_to_string(weights): Encode a weight vector as one comma-separated line
    string_to_weights(line):    Decode such a line
"""

import json
import os
import tempfile
from dataclasses import dataclass, field
from pathlib     import Path
from typing      import Iterable, Sequence

from snnake.exceptions import StorageError

FORMAT_VERSION = 1


def weights_to_string(weights: Iterable[float]) -> str:
    # repr() gives the shortest string that reads back to the same float
    return ",".join(repr(float(w)) for w in weights)


def string_to_weights(line: str) -> list[float]:
    try:
        return [float(v) for v in line.strip().split(',')]
    except ValueError as e:
        raise StorageError(f"Malformed weight list '{line.strip()}': {e}") from e


@dataclass(frozen=True)
class GenerationRecord:
    """
    The best individual of a generation.

    'generation' is None for legacy lines that carry no generation index.
    """
    generation: int | None
    weights   : tuple[float, ...] = field(default_factory=tuple)
    fitness   : float             = 0.0

    def to_line(self) -> str:
        return json.dumps({
            "format"    : FORMAT_VERSION,
            "generation": self.generation,
            "weights"   : [float(w) for w in self.weights],
            "fitness"   : float(self.fitness),
        })

    @classmethod
    def from_line(cls, line: str) -> 'GenerationRecord':
        line = line.strip()
        if line.startswith('{'):
            return cls._from_json(line)
        return cls._from_legacy(line)

    @classmethod
    def _from_json(cls, line: str) -> 'GenerationRecord':
        try:
            data = json.loads(line)
        except json.JSONDecodeError as e:
            raise StorageError(f"Malformed generation record '{line}': {e}") from e
        version = data.get("format")
        if version != FORMAT_VERSION:
            raise StorageError(f"Unsupported generation record format {version!r}; expected {FORMAT_VERSION}")
        try:
            generation = data["generation"]
            return cls(None if generation is None else int(generation),
                       tuple(float(w) for w in data["weights"]),
                       float(data["fitness"]))
        except (KeyError, TypeError, ValueError) as e:
            raise StorageError(f"Incomplete generation record '{line}': {e}") from e

    @classmethod
    def _from_legacy(cls, line: str) -> 'GenerationRecord':
        # "<generation>: <weights> # <fitness>"; both the generation and the fitness are optional
        generation = None
        fitness    = 0.0
        if ':' in line:
            head, line = line.split(':', 1)
            try:
                generation = int(head.strip())
            except ValueError as e:
                raise StorageError(f"Malformed generation index '{head.strip()}'") from e
        if '#' in line:
            line, tail = line.split('#', 1)
            try:
                fitness = float(tail.strip())
            except ValueError as e:
                raise StorageError(f"Malformed fitness '{tail.strip()}'") from e
        return cls(generation, tuple(string_to_weights(line)), fitness)


class GeneticsStorage:
    """
    File-backed state of one genetic optimizer.

    Creating a GeneticsStorage creates its directory and (empty) files if they
    don't exist yet; doing so repeatedly is harmless.

    Public Attributes:
        key:             Identifier of the optimizer
        directory:       Directory holding the files of this optimizer
        population_file: Path of the population file
        best_file:       Path of the best-of-generation file

    Public Methods:
        read_population():        Weight vectors of the persisted population
        write_population(lists):  Replace the persisted population
        read_records():           All best-of-generation records
        last_best():              The last best-of-generation record, or None
        append_best(record):      Add a best-of-generation record
        commit(lists, record):    Replace the population and add its best record together
        clear():                  Empty both files
    """

    def __init__(self, key: str, root: 'str | os.PathLike'):
        if not key or '/' in key or '\\' in key:
            raise ValueError(f"Invalid optimizer key '{key}'")
        self.key             = key
        self.directory       = Path(root) / key
        self.population_file = self.directory / f"{key}.population.txt"
        self.best_file       = self.directory / f"{key}.best.txt"

        self.directory.mkdir(parents=True, exist_ok=True)
        self.population_file.touch(exist_ok=True)
        self.best_file.touch(exist_ok=True)

    def read_population(self) -> list[list[float]]:
        return [string_to_weights(line) for line in self._read_lines(self.population_file)]

    def write_population(self, population: Iterable[Sequence[float]]) -> None:
        self._replace(self.population_file, self._population_text(population))

    def read_records(self) -> list[GenerationRecord]:
        return [GenerationRecord.from_line(line) for line in self._read_lines(self.best_file)]

    def last_best(self) -> GenerationRecord | None:
        lines = self._read_lines(self.best_file)
        if not lines:
            return None
        return GenerationRecord.from_line(lines[-1])

    def append_best(self, record: GenerationRecord) -> None:
        self._replace(self.best_file, self._with_record(self._read_text(self.best_file), record))

    def commit(self, population: Iterable[Sequence[float]], record: GenerationRecord) -> None:
        """
        Persist a closed generation: the next population and its best record.

        Both files are staged before either is replaced. If the population file
        cannot be replaced after the best file was, the previous best file is
        restored, so the two files always describe the same generation.
        """
        previous_best = self._read_text(self.best_file)
        best_tmp      = self._stage(self.best_file, self._with_record(previous_best, record))
        try:
            population_tmp = self._stage(self.population_file, self._population_text(population))
        except BaseException:
            self._discard(best_tmp)
            raise

        try:
            os.replace(best_tmp, self.best_file)
        except BaseException:
            self._discard(best_tmp)
            self._discard(population_tmp)
            raise

        try:
            os.replace(population_tmp, self.population_file)
        except BaseException:
            self._discard(population_tmp)
            self._replace(self.best_file, previous_best)
            raise

    def clear(self) -> None:
        self._replace(self.population_file, "")
        self._replace(self.best_file, "")

    @staticmethod
    def _read_lines(path: Path) -> list[str]:
        if not path.exists():
            return []
        return [line for line in path.read_text().splitlines() if line.strip()]

    @staticmethod
    def _read_text(path: Path) -> str:
        return path.read_text() if path.exists() else ""

    @staticmethod
    def _population_text(population: Iterable[Sequence[float]]) -> str:
        return "".join(weights_to_string(weights) + "\n" for weights in population)

    @staticmethod
    def _with_record(text: str, record: GenerationRecord) -> str:
        if text and not text.endswith("\n"):
            text += "\n"
        return text + record.to_line() + "\n"

    def _stage(self, path: Path, text: str) -> str:
        """Write 'text' to a synced temporary file next to 'path'; returns its name."""
        fd, tmp_name = tempfile.mkstemp(dir=self.directory, prefix=path.name, suffix=".tmp")
        try:
            with os.fdopen(fd, 'w') as f:
                f.write(text)
                f.flush()
                os.fsync(f.fileno())
        except BaseException:
            self._discard(tmp_name)
            raise
        return tmp_name

    def _replace(self, path: Path, text: str) -> None:
        tmp_name = self._stage(path, text)
        try:
            os.replace(tmp_name, path)
        except BaseException:
            self._discard(tmp_name)
            raise

    @staticmethod
    def _discard(tmp_name: str) -> None:
        if os.path.exists(tmp_name):
            os.remove(tmp_name)
