"""Registration errors."""

from __future__ import annotations

from territory.domain.exceptions import TerritoryError


class AgentAlreadyExistsError(TerritoryError):
    """Raised when registering an agent id that is already taken."""

    def __init__(self, agent_id: str) -> None:
        self.agent_id = agent_id
        super().__init__(f"Agent already exists: {agent_id}")
