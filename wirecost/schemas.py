from pydantic import BaseModel, Field
from typing import Optional, Union, Dict
from datetime import datetime
from .models import WireType, RateType

# Form values arrive as numbers or text — the calculator parses both
NumberInput = Optional[Union[float, str]]


class CostingInput(BaseModel):
    """Costing form fields. Accepts the form's camelCase names or snake_case."""
    specifications: str
    cu_strands: NumberInput = Field(None, alias="cuStrands")
    gauge: NumberInput = None
    inner_od: NumberInput = Field(None, alias="innerOD")
    no_of_cores: NumberInput = Field(None, alias="noOfCores")
    round_od: NumberInput = Field(None, alias="roundOD")
    flat_b: NumberInput = Field(None, alias="flatB")
    flat_w: NumberInput = Field(None, alias="flatW")
    labour_on_wire: NumberInput = Field(None, alias="labourOnWire")
    length_req: NumberInput = Field(None, alias="lengthReq")
    type: WireType = WireType.WIRE
    plug_cost: NumberInput = Field(None, alias="plugCost")
    terminal_acc_cost: NumberInput = Field(None, alias="terminalAccCost")
    copper_rate: NumberInput = Field(None, alias="copperRate")
    pvc_rate: NumberInput = Field(None, alias="pvcRate")
    enquiry_by: Optional[str] = Field(None, alias="enquiryBy")
    company: Optional[str] = None
    remarks: Optional[str] = None
    # None -> COSTING_APPLY_ALLOWANCES setting
    apply_allowances: Optional[bool] = Field(None, alias="applyAllowances")

    class Config:
        populate_by_name = True

    def to_fields(self) -> dict:
        """Calculator input dict (snake_case, allowance flag stripped)."""
        fields = self.model_dump(exclude={"apply_allowances"})
        fields["type"] = self.type.value
        return fields


class CostingEntryResult(BaseModel):
    success: bool
    message: str
    costing_id: str
    record: Dict[str, str]


class SheetInitResult(BaseModel):
    ok: bool
    sheet: str
    created: bool
    headers: int


class MaterialRateBase(BaseModel):
    rate_type: RateType
    value: float
    unit: Optional[str] = None
    description: Optional[str] = None


class MaterialRateUpdate(BaseModel):
    value: float = Field(..., gt=0)
    description: Optional[str] = None


class MaterialRate(MaterialRateBase):
    id: int
    updated_at: datetime
    class Config:
        from_attributes = True
