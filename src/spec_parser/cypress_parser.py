"""Extract test case definitions from Cypress spec files.

Spec files are read line by line. The recognized statements are:

    describe('Login', ...)                 -> suite "Login"
    it('works.', () => {                   -> test case "Login works."
    TBCS_AUTID('CY-LOGIN-01');             -> external id
    TBCS_DESCRIPTION('Checks the login');  -> description
    cy.log('Open the login page.');        -> test step

TBCS_CATEGORY(...) is accepted but ignored. Everything else is skipped.
"""

import logging
import os
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional

from src.models.test_case import TestCaseDefinition

from .errors import SpecParseError

logger = logging.getLogger(__name__)

DEFAULT_SUFFIX = ".spec.js"

# first single- or double-quoted argument of a call
_NAME_PATTERN = re.compile(r"""\(\s*(['"`])(.*?)\1""")


def _meta_pattern(key: str) -> re.Pattern:
    return re.compile(key + r"""\(\s*(['"`])(.*)\1\s*\)""")


_AUTID_PATTERN = _meta_pattern("TBCS_AUTID")
_DESCRIPTION_PATTERN = _meta_pattern("TBCS_DESCRIPTION")


@dataclass
class SpecSuite:
    """Test cases of one describe() block."""
    name: str
    file_path: str
    test_cases: List[TestCaseDefinition] = field(default_factory=list)


@dataclass
class _PendingTestCase:
    name: str
    external_id: Optional[str] = None
    description: str = ""
    steps: List[str] = field(default_factory=list)

    def freeze(self) -> TestCaseDefinition:
        return TestCaseDefinition(
            external_id=self.external_id,
            name=self.name,
            description=self.description,
            test_steps=tuple(self.steps),
            mark_for_review=True,
        )


def call_argument(line: str) -> str:
    """Return the first quoted argument of a call, or the line itself."""
    match = _NAME_PATTERN.search(line)
    return match.group(2) if match else line


def meta_value(pattern: re.Pattern, line: str) -> str:
    match = pattern.search(line)
    return match.group(2) if match else ""


class CypressSpecParser:
    """Parses Cypress spec files into SpecSuites.

    Example:
        >>> parser = CypressSpecParser(suffix=".spec.js")
        >>> suites = parser.parse_directory("cypress/e2e")
        >>> [tc.external_id for s in suites for tc in s.test_cases]
        ['CY-LOGIN-01', 'CY-LOGIN-02']
    """

    def __init__(self, suffix: str = DEFAULT_SUFFIX):
        self.suffix = suffix

    def find_spec_files(self, directory: str) -> List[str]:
        """Return all files below directory ending with the suffix, sorted.

        Raises:
            SpecParseError: If the directory does not exist
        """
        if not os.path.isdir(directory):
            raise SpecParseError(directory, "not a directory")
        return sorted(
            str(path) for path in Path(directory).rglob("*")
            if path.is_file() and path.name.endswith(self.suffix)
        )

    def parse_directory(self, directory: str) -> List[SpecSuite]:
        suites: List[SpecSuite] = []
        for file_path in self.find_spec_files(directory):
            logger.info(f"Scanning: {file_path}")
            suites.extend(self.parse_file(file_path))
        return suites

    def parse_file(self, file_path: str) -> List[SpecSuite]:
        """Parse one spec file.

        Raises:
            SpecParseError: If the file cannot be read
        """
        try:
            with open(file_path, 'r', encoding='utf-8') as f:
                content = f.read()
        except OSError as e:
            raise SpecParseError(file_path, str(e)) from e
        return self.parse_text(content, file_path)

    def parse_text(self, content: str, file_path: str = "<string>") -> List[SpecSuite]:
        suites: List[SpecSuite] = []
        suite: Optional[SpecSuite] = None
        pending: Optional[_PendingTestCase] = None

        def flush() -> None:
            if pending is not None and suite is not None:
                suite.test_cases.append(pending.freeze())

        for raw_line in content.splitlines():
            line = raw_line.lstrip()

            if line.startswith("describe("):
                flush()
                pending = None
                suite = SpecSuite(name=call_argument(line), file_path=file_path)
                suites.append(suite)
            elif line.startswith("it("):
                flush()
                if suite is None:
                    logger.warning(f"{file_path}: it() outside of describe() ignored")
                    pending = None
                    continue
                pending = _PendingTestCase(name=f"{suite.name} {call_argument(line)}")
            elif pending is None:
                continue
            elif line.startswith("TBCS_AUTID"):
                pending.external_id = meta_value(_AUTID_PATTERN, line) or None
            elif line.startswith("TBCS_DESCRIPTION"):
                pending.description = meta_value(_DESCRIPTION_PATTERN, line)
            elif line.startswith("TBCS_CATEGORY"):
                continue
            elif line.startswith("cy.log("):
                pending.steps.append(call_argument(line))

        flush()
        return suites
