"""
Domain models for clients, projects and field records.

These models represent the core domain entities and should be independent
of any infrastructure concerns (database clients, HTTP APIs, etc.).
Field names are snake_case in Python and camelCase on the wire.
"""
from typing import Dict, List, Optional
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class DomainModel(BaseModel):
    """Base model serializing to camelCase while accepting either form."""
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
    )


class GeoLocation(DomainModel):
    """Geographic location of a field record."""
    lat: float = 0.0
    lng: float = 0.0
    description: str = ""

    @property
    def has_coordinates(self) -> bool:
        """A location at (0, 0) is treated as having no coordinates."""
        return not (self.lat == 0 and self.lng == 0)


class BiophysicalAttributes(DomainModel):
    """Site description fields recorded for a field record."""
    elevation: str = ""
    ecoregion: str = ""
    mean_annual_precipitation: str = ""
    rainfall_seasonality: str = ""
    evapotranspiration: str = ""
    geology: str = ""
    water_management_area: str = ""
    soil_erodibility: str = ""
    vegetation_type: str = ""
    conservation_status: str = ""
    fepa_features: str = ""


class PhaseImpacts(DomainModel):
    """Human impact assessment fields recorded for a field record."""
    runoff_hard_surfaces: str = ""
    runoff_septic_tanks: str = ""
    sediment_input: str = ""
    flood_peaks: str = ""
    pollution: str = ""
    weeds_iap: str = Field(default="", alias="weedsIAP")


class ImageRef(DomainModel):
    """Reference to an uploaded image."""
    url: str
    name: str = ""


class FieldRecord(DomainModel):
    """
    One logical field observation joined from a biophysical row and an
    impacts row sharing the same key.

    ``impacts`` is None when no impacts row was recorded, which is distinct
    from an impacts row whose fields are all blank.
    """
    id: str
    project_id: str = ""
    owner_id: str = ""
    location: GeoLocation = Field(default_factory=GeoLocation)
    biophysical: BiophysicalAttributes = Field(default_factory=BiophysicalAttributes)
    impacts: Optional[PhaseImpacts] = None
    images: List[ImageRef] = Field(default_factory=list)
    created_at: int = Field(default=0, description="Epoch milliseconds")


class Client(DomainModel):
    """Client company and contact details."""
    id: str
    owner_id: str = ""
    company_name: str = ""
    company_reg_num: str = ""
    company_type: str = ""
    contact_email: str = ""
    contact_person: str = ""
    contact_phone: str = ""
    address: str = ""
    image_url: str = ""
    created_at: int = 0


class Project(DomainModel):
    """Project carried out for a client."""
    id: str
    client_id: Optional[str] = None
    owner_id: str = ""
    project_name: str = ""
    created_at: int = 0
    app_user_username: str = ""
    company_email: str = ""
    company_name: str = ""
    image_url: str = ""


class ElevationSummary(DomainModel):
    """Summary of valid elevation values."""
    avg: float
    min: float
    max: float


class AggregateStats(DomainModel):
    """Statistics derived from a list of field records. Never stored."""
    total_entries: int = 0
    total_images: int = 0
    vegetation_counts: Dict[str, int] = Field(default_factory=dict)
    conservation_counts: Dict[str, int] = Field(default_factory=dict)
    impact_counts: Dict[str, int] = Field(default_factory=dict)
    elevation_ranges: Dict[str, int] = Field(default_factory=dict)
    elevation: Optional[ElevationSummary] = None

    @property
    def vegetation_types(self) -> List[str]:
        return list(self.vegetation_counts)


class ChartPoint(DomainModel):
    """Single named value in a chart series."""
    name: str
    value: int
    color: Optional[str] = None


class ChartData(DomainModel):
    """Chart series for the analytics views."""
    vegetation: List[ChartPoint] = Field(default_factory=list)
    conservation: List[ChartPoint] = Field(default_factory=list)
    impacts: List[ChartPoint] = Field(default_factory=list)
    elevation: List[ChartPoint] = Field(default_factory=list)


class WeatherCondition(DomainModel):
    text: str
    icon: str


class WeatherLocation(DomainModel):
    name: str
    region: str


class CurrentWeather(DomainModel):
    temp_c: float = Field(alias="temp_c")
    condition: WeatherCondition
    wind_kph: float = Field(alias="wind_kph")
    humidity: float


class WeatherData(DomainModel):
    """Current weather at a location."""
    location: WeatherLocation
    current: CurrentWeather


class UserContext(BaseModel):
    """The acting user, as identified by the upstream auth layer."""
    uid: str
    email: str


class ClientDetails(DomainModel):
    """Editable client fields."""
    company_name: str = Field(min_length=1)
    company_reg_num: str = ""
    company_type: str = ""
    contact_email: str = ""
    contact_person: str = ""
    contact_phone: str = ""
    address: str = ""
    image_url: str = ""


class ProjectDetails(DomainModel):
    """Editable project fields."""
    project_name: str = Field(min_length=1)
    image_url: str = ""


class FieldRecordDetails(DomainModel):
    """Editable field record content."""
    location: GeoLocation = Field(default_factory=GeoLocation)
    biophysical: BiophysicalAttributes = Field(default_factory=BiophysicalAttributes)
    impacts: Optional[PhaseImpacts] = None
    images: List[ImageRef] = Field(default_factory=list)


class DashboardSummary(DomainModel):
    """Totals across every project of the acting user."""
    client_count: int = 0
    project_count: int = 0
    stats: AggregateStats = Field(default_factory=AggregateStats)
