"""Engine settings loaded from YAML."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, HttpUrl


class ExportSettings(BaseModel):
    """Page geometry and typesetting used when rasterising a document."""

    model_config = ConfigDict(extra="forbid")

    page_width_mm: float = Field(default=210.0, gt=0)
    page_height_mm: float = Field(default=297.0, gt=0)
    dpi: int = Field(default=150, ge=36, le=600)
    margin_px: int = Field(default=48, ge=0)
    font_path: str | None = None
    bold_font_path: str | None = None
    font_size: int = Field(default=18, ge=6)
    heading_scale: float = Field(default=1.5, ge=1.0)
    cell_padding_px: int = Field(default=8, ge=0)
    image_max_height_px: int = Field(default=90, ge=16)
    filled_cell_color: str = "#f0fdf4"
    empty_cell_color: str = "#fefce8"
    header_cell_color: str = "#f3f4f6"
    border_color: str = "#111827"
    text_color: str = "#000000"

    @property
    def page_width_px(self) -> int:
        return round(self.page_width_mm / 25.4 * self.dpi)

    @property
    def page_height_px(self) -> int:
        return round(self.page_width_px * self.page_height_mm / self.page_width_mm)


class UploadSettings(BaseModel):
    """Remote image store used by the upload adapter."""

    model_config = ConfigDict(extra="forbid")

    url: HttpUrl | None = None
    timeout_seconds: float = Field(default=30.0, gt=0)
    field_name: str = "file"


class EngineSettings(BaseModel):
    model_config = ConfigDict(extra="forbid")

    export: ExportSettings = Field(default_factory=ExportSettings)
    upload: UploadSettings = Field(default_factory=UploadSettings)
