from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class ClientLogo(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    client_id: int
    logo_url: str # e.g. /uploads/client-logos/42.png
