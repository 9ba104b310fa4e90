"""
Department record exported to and imported from spreadsheets.
"""

from datetime import datetime
from typing import Annotated, List, Optional

from pydantic import BaseModel, Field

from services.column_registry import ExcelColumn


class SysDept(BaseModel):
    """A node of the department hierarchy."""

    dept_id: Annotated[Optional[int], ExcelColumn(name="Dept ID", width=10)] = None
    parent_id: Annotated[Optional[int], ExcelColumn(name="Parent ID", width=10)] = None
    ancestors: str = Field("", description="Comma separated ancestor ids, maintained by the service layer")
    dept_name: Annotated[Optional[str], ExcelColumn(name="Dept Name", width=24)] = None
    order_num: Annotated[Optional[int], ExcelColumn(name="Order")] = None
    leader: Annotated[Optional[str], ExcelColumn(name="Leader")] = None
    phone: Annotated[Optional[str], ExcelColumn(name="Phone", width=14)] = None
    email: Annotated[Optional[str], ExcelColumn(name="Email", width=28)] = None
    status: Annotated[Optional[str], ExcelColumn(
        name="Status",
        translation="0=Normal,1=Disabled",
        pick_list=("Normal", "Disabled"),
        prompt="Normal or Disabled"
    )] = None
    create_time: Annotated[Optional[datetime], ExcelColumn(
        name="Created",
        width=20,
        date_format="yyyy-MM-dd HH:mm:ss"
    )] = None
    children: List["SysDept"] = Field(default_factory=list)

    def get_parent_name(self) -> str:
        return f"#{self.parent_id}" if self.parent_id is not None else ""
