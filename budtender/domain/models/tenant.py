from typing import Dict, Optional
from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class TenantConfig(BaseModel):
    tenant_id: str
    name: str
    display_name: str
    persona: str                 # system prompt text for this store's budtender
    tone: str = "friendly and helpful"
    colors: Dict[str, str] = {}
    menu_url: Optional[str] = None

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    def public(self) -> dict:
        """Branding the widget may see. Persona text stays server-side."""
        return self.model_dump(by_alias=True, exclude={"persona", "tone"})
