from typing import Any, Dict

from pydantic import BaseModel, ConfigDict


class BaseInfo(BaseModel):
    """Immutable base for values handed across component boundaries."""

    model_config = ConfigDict(
        populate_by_name=True,
        frozen=True,
        arbitrary_types_allowed=True,
    )

    def to_dict(self) -> Dict[str, Any]:
        return self.model_dump(exclude_none=True)
