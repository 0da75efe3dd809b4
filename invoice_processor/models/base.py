from typing import Any, Dict, Type, TypeVar
from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

T = TypeVar("T", bound="RecordModel")

class RecordModel(BaseModel):
    """
    Base model for persisted records.

    Attributes are snake_case in Python and camelCase on the wire and on disk,
    matching the layout the browser client stores.
    """
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
    )

    def to_wire(self) -> Dict[str, Any]:
        """Serialize with camelCase keys, as stored in the JSON file."""
        return self.model_dump(mode="json", by_alias=True)

    @classmethod
    def from_mongo(cls: Type[T], data: Dict[str, Any]) -> T:
        """Convert MongoDB document to Pydantic model."""
        if not data:
            return None
        data = dict(data)
        data["id"] = data.pop("_id", None)
        data.pop("seq", None)
        return cls.model_validate(data)

    def to_mongo(self) -> Dict[str, Any]:
        """Convert Pydantic model to MongoDB document."""
        data = self.to_wire()
        data["_id"] = data.pop("id")
        return data
