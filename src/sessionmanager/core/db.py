from uuid import UUID, uuid4

from pydantic import BaseModel, ConfigDict, Field


class MongoModel(BaseModel):
    """Base of stored models: a UUID id kept as `_id` in MongoDB and as `id` everywhere else."""

    id: UUID = Field(alias="_id", serialization_alias="id", default_factory=uuid4)

    model_config = ConfigDict(
        populate_by_name=True,
        json_schema_serialization_defaults_required=True,
    )
