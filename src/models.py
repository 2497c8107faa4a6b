"""Pydantic models for credentials and extraction results."""

from pydantic import BaseModel, Field, SecretStr, computed_field


class Credentials(BaseModel):
    """Portal credentials supplied with a single request."""

    username: str = Field(min_length=1)
    password: SecretStr


class VehicleRecord(BaseModel):
    """Daily passenger count for one vehicle."""

    identifier: str = Field(description="Internal number without prefix or leading zeros")
    pasajeros: str = Field(description="Passenger total for the day, digits only")


class ExtractionResult(BaseModel):
    """Outcome of scanning the report page for the passenger table."""

    vehicles: list[VehicleRecord] = Field(default_factory=list)
    diagnostic_snippet: str | None = None
    source_url: str | None = None

    @computed_field
    @property
    def success(self) -> bool:
        return len(self.vehicles) > 0
