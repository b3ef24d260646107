from pydantic import BaseModel, Field
from typing import Dict, List, Optional


class Attribute(BaseModel):
    key: str = Field(..., description="Attribute name")
    value: str = Field(..., description="Human-readable attribute value")


class Response(BaseModel):
    """Outcome of a successful call: advisory attributes for observers."""
    attributes: List[Attribute] = Field(default_factory=list, description="Ordered key/value pairs")

    def add_attribute(self, key: str, value) -> "Response":
        self.attributes.append(Attribute(key=key, value=str(value)))
        return self

    def get(self, key: str) -> Optional[str]:
        for attr in self.attributes:
            if attr.key == key:
                return attr.value
        return None

    def to_dict(self) -> Dict[str, str]:
        return {attr.key: attr.value for attr in self.attributes}
