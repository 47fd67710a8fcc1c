"""Pydantic response models (DTOs) for FastAPI endpoints."""

from pydantic import BaseModel, Field


class ExtractedInfoDTO(BaseModel):
    business_name: str | None = None
    services_or_products: list[str] = Field(default_factory=list)
    price_range: str | None = None
    specialties: list[str] = Field(default_factory=list)
    brand_tone: str | None = None


class DealSuggestionDTO(BaseModel):
    title: str
    description: str
    deal_type: str
    original_price: float
    deal_price: float
    discount_percentage: float
    max_claims: int | None = None
    terms_and_conditions: str = ""
    how_it_works: str = ""
    highlights: list[str] = Field(default_factory=list)
    amenities: list[str] = Field(default_factory=list)
    fine_print: str = ""
    suggested_image_prompt: str = ""


class AnalysisDTO(BaseModel):
    business_summary: str
    extracted_info: ExtractedInfoDTO
    suggested_deals: list[DealSuggestionDTO]
    recommended_images: list[str] = Field(default_factory=list)


class WebsiteImportResponseDTO(BaseModel):
    analysis: AnalysisDTO
    website_url: str
    website_images: list[str] = Field(default_factory=list)

    @classmethod
    def from_result(cls, result):
        """Convert WebsiteImportResult to DTO."""
        return cls.model_validate(result.to_dict())


class ErrorResponseDTO(BaseModel):
    error: str
    code: str
    retryable: bool


class HealthResponseDTO(BaseModel):
    status: str
    timestamp: str
    version: str
