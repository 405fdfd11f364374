"""Test helpers shared by unit and integration tests."""

from .fake_testbench import FakeTestBench

__all__ = ['FakeTestBench']
