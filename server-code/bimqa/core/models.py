from __future__ import annotations
from dataclasses import asdict, dataclass, field
from pydantic import BaseModel, Field
from typing import List, Dict, Any, Literal, Optional

from bimqa.core.columns import CATEGORY_FIELD, ElementColumn

Task = Literal["count", "distinct", "group_count", "list", "sum_area", "sum_volume"]
TASKS = ("count", "distinct", "group_count", "list", "sum_area", "sum_volume")


class ChatRequest(BaseModel):
    # both names are accepted; the model id is the URN of the translated model
    modelId: Optional[str] = None
    urn: Optional[str] = None
    question: Optional[str] = None
    debug: bool = False

    @property
    def model_id(self) -> Optional[str]:
        return self.modelId or self.urn


class QueryPlan(BaseModel):
    urn: str
    intent: Literal["bim", "general"] = "bim"
    task: Task = "count"
    category: Optional[str] = None
    filterParam: Optional[ElementColumn] = None
    filterValue: Optional[Any] = None
    targetParam: Optional[ElementColumn] = None
    propsFlatKey: Optional[str] = None
    limit: int = 100
    useSemanticSearch: bool = False
    semanticQuery: Optional[str] = None
    topK: int = 50
    notes: str = ""


@dataclass(frozen=True)
class ModelMetadata:
    categoryField: ElementColumn = CATEGORY_FIELD
    categories: List[str] = field(default_factory=list)
    paramSamples: Dict[str, List[str]] = field(default_factory=dict)
    areaKeys: List[str] = field(default_factory=list)
    volumeKeys: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        d = asdict(self)
        d["categoryField"] = self.categoryField.value
        return d
