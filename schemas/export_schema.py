"""
Export-related Pydantic schemas.
"""

from pydantic import BaseModel, Field


class ExportResult(BaseModel):
    """Details of a workbook written to the download directory."""

    filename: str = Field(..., description="Generated unique filename")
    path: str = Field(..., description="Absolute or configured path of the stored file")
    sheet_count: int = Field(..., description="Number of sheets written")
    row_count: int = Field(..., description="Number of data rows written across sheets")

    class Config:
        json_schema_extra = {
            "example": {
                "filename": "0b4f0a5e-7d7e-4b0e-9a55-5c1f7f0a1d2c_dept.xlsx",
                "path": "download/0b4f0a5e-7d7e-4b0e-9a55-5c1f7f0a1d2c_dept.xlsx",
                "sheet_count": 1,
                "row_count": 12
            }
        }
