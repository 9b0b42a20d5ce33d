"""Registry document: one per coordination domain.

Serialized to ``.hive/epics/<domain>/agents.json`` as::

    {"agents": {<id>: Participant}, "coordination": {"work_streams": {<name>: WorkStream}}}
"""

from pydantic import BaseModel, Field

from .participant import Participant
from .work_stream import WorkStream


class Coordination(BaseModel):
    """Work-stream section of the registry."""

    work_streams: dict[str, WorkStream] = Field(default_factory=dict)


class Registry(BaseModel):
    """Participants and work streams of one domain."""

    agents: dict[str, Participant] = Field(default_factory=dict)
    coordination: Coordination = Field(default_factory=Coordination)
