"""Read test case definitions from Cypress spec files."""

from .cypress_parser import CypressSpecParser, SpecSuite, DEFAULT_SUFFIX
from .errors import SpecParseError

__all__ = ['CypressSpecParser', 'SpecSuite', 'SpecParseError', 'DEFAULT_SUFFIX']
