from datetime import datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class Scope(str, Enum):
    CLIENT = "client"
    SERVER = "server"
    SHARED = "shared"
    NONE = "none"


# Scopes that own a directory under both the source and the output root.
SCOPE_DIRECTORIES: tuple[Scope, ...] = (Scope.CLIENT, Scope.SERVER, Scope.SHARED)


class ScopeViolation(BaseModel):
    """A client module requiring server code, or the reverse."""

    model_config = ConfigDict(frozen=True)

    referencing: Scope
    referenced: Scope
    reference: str

    @property
    def message(self) -> str:
        return (
            f"Cannot reference code from src/{self.referenced.value} from src/{self.referencing.value}. "
            "(Code will fail when ran)"
        )


class DeferredBinding(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
    initializer: str
    line_number: int

    @property
    def reassignment(self) -> str:
        return f"{self.name} = {self.initializer}"


class WatchEventKind(str, Enum):
    ADD = "add"
    CHANGE = "change"
    UNLINK = "unlink"
    ADD_DIR = "addDir"
    UNLINK_DIR = "unlinkDir"


class WatchEvent(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: WatchEventKind
    path: str


class BuildRun(BaseModel):
    started_at: datetime
    finished_at: datetime | None = None
    modules: list[str] = Field(default_factory=list)
    violations: list[ScopeViolation] = Field(default_factory=list)

    @property
    def duration_seconds(self) -> float:
        if self.finished_at is None:
            return 0.0
        return (self.finished_at - self.started_at).total_seconds()


class ModInfo(BaseModel):
    id: str
    name: str
    poster: str
    description: str
    require: list[str] = Field(default_factory=list)
