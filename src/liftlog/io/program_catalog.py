"""
Program library.

Programs are stored as one JSON list under the ``programs`` key.  The
session engine only reads from the catalog; seeding fills an empty
catalog with the bundled default programs.
"""

import json
import logging
import time
from pathlib import Path

from ..core.clock import to_timestamp, utc_now
from ..core.config import PROGRAMS_KEY
from ..core.models import Program
from .local_store import LocalStore
from .program_loader import load_programs_from_yaml
from .serializers import ValidationError, dict_to_program, program_to_dict

logger = logging.getLogger(__name__)


class ProgramCatalog:
    """Lookup and seeding of training programs."""

    def __init__(self, store: LocalStore, user_programs_dir: Path | None = None, key: str = PROGRAMS_KEY):
        """
        Initialize the catalog.

        Args:
            store: Key-value store holding the program list
            user_programs_dir: Directory of user YAML overrides used by seeding
            key: Storage key for the program list
        """
        self.store = store
        self.user_programs_dir = user_programs_dir
        self.key = key

    def list_programs(self) -> list[Program]:
        """
        Return all stored programs in insertion order.

        Entries that fail validation are skipped; an unreadable list reads
        as empty.
        """
        text = self.store.get(self.key)
        if not text:
            return []
        try:
            raw = json.loads(text)
        except json.JSONDecodeError as e:
            logger.warning("Ignoring corrupt program library: %s", e)
            return []
        if not isinstance(raw, list):
            logger.warning("Ignoring program library: expected a list")
            return []

        programs: list[Program] = []
        for entry in raw:
            try:
                programs.append(dict_to_program(entry))
            except ValidationError as e:
                logger.warning("Skipping invalid program: %s", e)
        return programs

    def get_program_by_id(self, program_id: str) -> Program | None:
        """Return the program with the given id, or None."""
        for program in self.list_programs():
            if program.program_id == program_id:
                return program
        return None

    def find_program(self, ref: str) -> Program | None:
        """
        Resolve a program by id, then by short name (e.g. "push").

        Returns:
            Matching Program or None
        """
        programs = self.list_programs()
        for program in programs:
            if program.program_id == ref:
                return program
        lowered = ref.lower()
        for program in programs:
            if program.name.lower() == lowered:
                return program
        return None

    def add_program(self, program: Program) -> Program:
        """
        Append a program to the library.

        A program with an empty created_at is stamped with the current
        time; an id already in the library is replaced with a generated
        ``program-<epoch ms>`` id.

        Returns:
            The program as stored
        """
        programs = self.list_programs()
        existing_ids = {p.program_id for p in programs}

        program_id = program.program_id
        if program_id in existing_ids:
            stamp = int(time.time() * 1000)
            program_id = f"program-{stamp}"
            while program_id in existing_ids:
                stamp += 1
                program_id = f"program-{stamp}"

        stored = Program(
            program_id=program_id,
            name=program.name,
            display_name=program.display_name,
            exercises=list(program.exercises),
            created_at=program.created_at or to_timestamp(utc_now()),
        )
        programs.append(stored)
        self._write(programs)
        return stored

    def seed_defaults(self) -> int:
        """
        Store the bundled default programs if the library is empty.

        Returns:
            Number of programs added
        """
        if self.list_programs():
            return 0
        defaults = load_programs_from_yaml(self.user_programs_dir)
        logger.info("Seeding %d default programs", len(defaults))
        for program in defaults:
            self.add_program(program)
        return len(defaults)

    def _write(self, programs: list[Program]) -> None:
        self.store.set(self.key, json.dumps([program_to_dict(p) for p in programs], indent=2))
