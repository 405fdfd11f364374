"""Load test results produced by the test runner.

A results file is YAML (or JSON, which is valid YAML) holding a list of
entries, either at the top level or under a `results` key:

    - external_id: CY-SAMPLE-LOGIN-01
      name: Login page contains specified elements.
      description: Test that the login page contains required elements.
      test_steps:
        - Go to the login page.
        - Check that the login field for "Username" is displayed.
      verdict: Passed
"""

from typing import Any, Dict, List, Tuple

import yaml

from src.models.test_case import TestCaseDefinition, Verdict

from .errors import ResultsFileError

_VERDICTS = {verdict.value.lower(): verdict for verdict in Verdict}


class ResultsLoader:
    """Parses results files into (definition, verdict) pairs."""

    @classmethod
    def load(cls, file_path: str) -> List[Tuple[TestCaseDefinition, Verdict]]:
        """Load a results file.

        Raises:
            ResultsFileError: If the file cannot be read or an entry is invalid
        """
        try:
            with open(file_path, 'r', encoding='utf-8') as f:
                content = f.read()
        except FileNotFoundError:
            raise ResultsFileError(file_path, "file not found")
        except OSError as e:
            raise ResultsFileError(file_path, str(e))

        try:
            data = yaml.safe_load(content)
        except yaml.YAMLError as e:
            raise ResultsFileError(file_path, f"invalid YAML/JSON syntax: {e}")

        if isinstance(data, dict) and 'results' in data:
            data = data['results']
        if data is None:
            return []
        if not isinstance(data, list):
            raise ResultsFileError(file_path, f"expected a list of results, got {type(data).__name__}")

        return [cls._parse_entry(file_path, index, entry) for index, entry in enumerate(data)]

    @classmethod
    def _parse_entry(
        cls,
        file_path: str,
        index: int,
        entry: Any,
    ) -> Tuple[TestCaseDefinition, Verdict]:
        if not isinstance(entry, dict):
            raise ResultsFileError(file_path, f"expected a mapping, got {type(entry).__name__}", index)

        external_id = cls._optional_str(file_path, index, entry, 'external_id', 'externalId')
        if not external_id:
            raise ResultsFileError(file_path, "missing external_id", index)

        raw_steps = entry.get('test_steps', entry.get('testSteps', [])) or []
        if not isinstance(raw_steps, list) or not all(isinstance(step, str) for step in raw_steps):
            raise ResultsFileError(file_path, "test_steps must be a list of strings", index)

        raw_verdict = entry.get('verdict', entry.get('status'))
        if not isinstance(raw_verdict, str) or raw_verdict.lower() not in _VERDICTS:
            allowed = ", ".join(verdict.value for verdict in Verdict)
            raise ResultsFileError(file_path, f"verdict must be one of {allowed}, got {raw_verdict!r}", index)

        definition = TestCaseDefinition(
            external_id=external_id,
            name=cls._optional_str(file_path, index, entry, 'name'),
            description=cls._optional_str(file_path, index, entry, 'description'),
            test_steps=tuple(raw_steps),
            overwrite=cls._flag(file_path, index, entry, 'overwrite', True),
            mark_for_review=cls._flag(file_path, index, entry, 'mark_for_review', True, 'markForReview'),
        )
        return definition, _VERDICTS[raw_verdict.lower()]

    @staticmethod
    def _optional_str(file_path: str, index: int, entry: Dict[str, Any], *keys: str) -> str:
        for key in keys:
            value = entry.get(key)
            if value is None:
                continue
            if not isinstance(value, (str, int)) or isinstance(value, bool):
                raise ResultsFileError(file_path, f"{key} must be a string", index)
            return str(value)
        return ""

    @staticmethod
    def _flag(file_path: str, index: int, entry: Dict[str, Any], key: str, default: bool, *aliases: str) -> bool:
        for name in (key,) + aliases:
            if name in entry:
                value = entry[name]
                if not isinstance(value, bool):
                    raise ResultsFileError(file_path, f"{name} must be true or false", index)
                return value
        return default
