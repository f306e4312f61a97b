from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

# ======================================================
# Configuration Commune Pydantic
# ======================================================


class CamelModel(BaseModel):
    """
    Base des schémas échangés avec la boutique.

    Le front envoie et attend du camelCase (`orderId`, `redirectUrl`...).
    Le snake_case reste accepté en entrée.
    """
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )
