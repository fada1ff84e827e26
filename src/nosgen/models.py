"""
Pydantic data models for NosGen.

Frames and their points are the single source of truth; keyframes, fit
models and atlas layouts are derived from them on every read and never
stored back.
"""

import hashlib
import random
import uuid
from enum import Enum
from typing import Annotated, Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter


class PivotMode(str, Enum):
    """Coordinate origin used for point coordinates in exported JSON."""
    TOP_LEFT = "top-left"
    BOTTOM_LEFT = "bottom-left"
    CENTER = "center"


class SpriteDirection(str, Enum):
    """Rotation direction of the sprite sheet."""
    CLOCKWISE = "clockwise"
    COUNTERCLOCKWISE = "counterclockwise"


class AppMode(str, Enum):
    """Export mode; decides which optional JSON blocks are written."""
    CHARACTER = "character"
    ANIMATION = "animation"
    NORMAL = "normal"


class AutoFillShape(str, Enum):
    """Curve used to fill non-keyframe positions."""
    ELLIPSE = "ellipse"
    CIRCLE = "circle"
    SQUARE = "square"
    TANGENT = "tangent"
    LINEAR = "linear"


class Severity(str, Enum):
    """Severity levels for validation checks."""
    ERROR = "error"
    WARN = "warn"
    INFO = "info"


class KeyframePoint(BaseModel):
    """A user-authored point position at one frame."""
    frame_index: int = Field(..., ge=0)
    x: float
    y: float

    model_config = ConfigDict(frozen=True, extra="forbid")


class FramePoint(BaseModel):
    """One logical point as placed on one frame, in frame pixel coordinates."""
    id: str
    name: str
    x: float = 0.0
    y: float = 0.0
    color: str = ""
    is_keyframe: bool = False

    model_config = ConfigDict(extra="forbid")


class FrameData(BaseModel):
    """A single source frame with its decoded image and points."""
    id: str
    name: str
    width: int = Field(..., ge=1)
    height: int = Field(..., ge=1)
    image: Optional[Any] = Field(default=None, exclude=True, repr=False)  # RGBA ndarray (H, W, 4)
    points: List[FramePoint] = Field(default_factory=list)

    model_config = ConfigDict(extra="forbid", arbitrary_types_allowed=True)

    def find_point(self, point_id):
        """Return the point with the given id, or None."""
        for point in self.points:
            if point.id == point_id:
                return point
        return None


class AtlasCell(BaseModel):
    """Rectangle of one cell in the atlas."""
    x: int
    y: int
    w: int
    h: int

    model_config = ConfigDict(frozen=True, extra="forbid")


class AtlasLayout(BaseModel):
    """Fixed row-major grid layout of all frames."""
    rows: int
    columns: int
    padding: int
    cell_width: int
    cell_height: int
    width: int
    height: int
    positions: List[AtlasCell] = Field(default_factory=list)

    model_config = ConfigDict(frozen=True, extra="forbid")


class PointGroup(BaseModel):
    """Named group of point-id lists, one list per group index."""
    id: str
    name: str
    entries: List[List[str]] = Field(default_factory=list)

    model_config = ConfigDict(extra="forbid")


class EllipseModel(BaseModel):
    shape: Literal["ellipse"] = "ellipse"
    cx: float
    cy: float
    rx: float
    ry: float
    phase: float
    rotation: float = 0.0

    model_config = ConfigDict(frozen=True, extra="forbid")


class CircleModel(BaseModel):
    shape: Literal["circle"] = "circle"
    cx: float
    cy: float
    r: float
    phase: float

    model_config = ConfigDict(frozen=True, extra="forbid")


class SquareModel(BaseModel):
    shape: Literal["square"] = "square"
    cx: float
    cy: float
    size: float
    phase: float  # in turns, [0, 1)

    model_config = ConfigDict(frozen=True, extra="forbid")


class LinearModel(BaseModel):
    shape: Literal["linear"] = "linear"
    points: List[KeyframePoint]

    model_config = ConfigDict(frozen=True, extra="forbid")


class TangentModel(BaseModel):
    shape: Literal["tangent"] = "tangent"
    points: List[KeyframePoint]

    model_config = ConfigDict(frozen=True, extra="forbid")


AutoFillModel = Annotated[
    Union[EllipseModel, CircleModel, SquareModel, LinearModel, TangentModel],
    Field(discriminator="shape"),
]

_autofill_model_adapter = TypeAdapter(AutoFillModel)


def parse_autofill_model(data):
    """Validate a plain dict into the fit model named by its "shape" tag."""
    return _autofill_model_adapter.validate_python(data)


class CheckResult(BaseModel):
    """Result of a single validation check."""
    rule_id: str
    severity: Severity
    passed: bool
    message: str
    evidence: Dict[str, Any] = Field(default_factory=dict)

    model_config = ConfigDict(extra="forbid")


class ValidationReport(BaseModel):
    """Collection of validation check results."""
    checks: List[CheckResult] = Field(default_factory=list)

    model_config = ConfigDict(extra="forbid")

    @property
    def has_errors(self):
        return any(c.severity == Severity.ERROR and not c.passed for c in self.checks)

    @property
    def error_count(self):
        return sum(1 for c in self.checks if c.severity == Severity.ERROR and not c.passed)

    @property
    def warning_count(self):
        return sum(1 for c in self.checks if c.severity == Severity.WARN and not c.passed)


def create_id():
    """Random id for points and groups."""
    return str(uuid.uuid4())


def create_point_color(rng=None):
    """
    Random display color for a new point.

    Pass a seeded random.Random to get reproducible colors.
    """
    rng = rng or random
    hue = rng.randrange(360)
    return f"hsl({hue} 70% 55%)"


def generate_frame_id(source_path, index):
    """
    Deterministic frame id from source path and index.
    """
    data = f"{source_path}:{index}"
    h = hashlib.sha256(data.encode()).hexdigest()[:12]
    return f"frame_{h}"


def parse_enum(enum_cls, value, default=None):
    """Coerce a raw value into enum_cls, returning default when it does not match."""
    if isinstance(value, enum_cls):
        return value
    try:
        return enum_cls(value)
    except (TypeError, ValueError):
        return default
