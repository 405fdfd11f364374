"""Epic and user stories that imported test cases are filed below.

An import creates one epic and one user story per spec suite. Both are
created on first use, so an import whose test cases all exist already
creates no requirement at all. A requirement that could not be created
does not stop the import; the affected test cases are created without a
user story.
"""

import logging
from typing import Dict, Optional

from src.models.outcome import Outcome
from src.models.session import AuthSession
from src.testbench_client.api_wrapper import TestBenchGateway

from .remote_call import attempt

logger = logging.getLogger(__name__)

DEFAULT_EPIC = "Cypress-Tests"


class RequirementHierarchy:
    """Creates and remembers the epic and its user stories of one import."""

    def __init__(self, gateway: TestBenchGateway, epic_name: str = DEFAULT_EPIC):
        self._gateway = gateway
        self.epic_name = epic_name
        self._epic: Optional[Outcome[str]] = None
        self._user_stories: Dict[str, Outcome[str]] = {}

    async def epic_id(self, auth: AuthSession) -> Optional[str]:
        """Return the epic id, creating the epic on the first call."""
        if self._epic is None:
            self._epic = await attempt(
                "create_epic",
                self._gateway.create_epic(auth, self.epic_name),
                epic=self.epic_name,
            )
            if self._epic.is_ok:
                logger.info(f"Created epic {self._epic.value} '{self.epic_name}'")
        return self._epic.value if self._epic.is_ok else None

    async def user_story_id(self, auth: AuthSession, name: str) -> Optional[str]:
        """Return the id of user story ``name``, creating it on the first call.

        Returns None when the user story or its epic could not be created.
        Failed creations are not retried within the same import.
        """
        if name not in self._user_stories:
            epic_id = await self.epic_id(auth)
            if epic_id is None:
                self._user_stories[name] = Outcome.warn(
                    "create_user_story", f"epic '{self.epic_name}' is not available", user_story=name
                )
            else:
                self._user_stories[name] = await attempt(
                    "create_user_story",
                    self._gateway.create_user_story(auth, epic_id, name),
                    epic_id=epic_id,
                    user_story=name,
                )
                if self._user_stories[name].is_ok:
                    logger.info(f"Created user story {self._user_stories[name].value} '{name}'")

        user_story = self._user_stories[name]
        if not user_story.is_ok:
            logger.warning(f"Test cases of '{name}' are created without a user story")
            return None
        return user_story.value
