# bimqa/prompts/versioned/v1/analyst.py
import json

TASK_TYPES = """- "count": number of elements (how many, số lượng, bao nhiêu, có mấy)
- "distinct": unique values of one field (which types, liệt kê các loại, những loại nào)
- "group_count": counts per group (per level, per room, theo tầng, theo phòng, phân theo)
- "sum_area": total area (diện tích, tổng diện tích)
- "sum_volume": total volume (thể tích, tổng thể tích, khối lượng, dung tích, volume)
- "list": detailed listing (list, show, danh sách, cho xem)"""

CATEGORY_ALIASES = """- "cửa" (not "cửa sổ"), door -> Doors
- "cửa sổ", window -> Windows
- "tường", "vách", wall -> Walls
- "sàn", "diện tích nhà/tòa nhà", floor -> Floors
- "mái", roof -> Roofs
- "cột", "trụ", column -> Columns
- "dầm", beam -> Beams
- "cầu thang", stair -> Stairs
- "lan can", railing -> Railings"""

UNIFIED_ANALYSIS_PROMPT = """
You are a BIM data analyst. Analyze the question and return a query plan as strict JSON.

## CATEGORIES (pick EXACTLY one name from this list, or null):
{CATEGORIES}

## TASK TYPES:
{TASK_TYPES}

## TERM -> CATEGORY MAPPING:
{CATEGORY_ALIASES}

## AVAILABLE FILTER PARAMETERS & VALUES:
{PARAM_SAMPLES}

## AREA KEYS (for sum_area):
{AREA_KEYS}

## VOLUME KEYS (for sum_volume):
{VOLUME_KEYS}

## QUESTION: "{QUESTION}"

## RULES:
1. intent: "bim" if the question is about the model's data, "general" for general knowledge.
2. category: MUST be an EXACT name from the list above, or null.
3. filterParam/filterValue: only when the question names a specific value (e.g. "level 1", "living room").
4. targetParam: for "distinct" use "type_name" unless another field is asked; for "group_count" the field to group by.
5. propsFlatKey: for "sum_area" prefer "Dimensions.Area" when present; for "sum_volume" prefer "Dimensions.Volume" when present.

Return ONLY JSON (no prose) exactly like:
{{
  "intent": "bim" | "general",
  "task": "count" | "distinct" | "group_count" | "sum_area" | "sum_volume" | "list",
  "category": "EXACT_NAME_OR_NULL",
  "filterParam": "PARAM_OR_NULL",
  "filterValue": "VALUE_OR_NULL",
  "targetParam": "PARAM_OR_NULL",
  "propsFlatKey": "KEY_OR_NULL",
  "limit": null,
  "notes": "brief reason"
}}
"""

CATEGORY_HINT_PROMPT = """
Which single BIM category does this question refer to?

CATEGORIES:
{CATEGORIES}

TERM -> CATEGORY MAPPING:
{CATEGORY_ALIASES}

QUESTION: "{QUESTION}"

Return ONLY JSON: {{"category": "EXACT_NAME_OR_NULL"}}
"""

INTENT_PROMPT = """
Classify the question about a BIM model.

TASK TYPES:
{TASK_TYPES}

QUESTION: "{QUESTION}"

intent is "bim" when the answer needs the model's element data, "general" for general BIM/APS knowledge.

Return ONLY JSON:
{{
  "intent": "bim" | "general",
  "task": "count" | "distinct" | "group_count" | "sum_area" | "sum_volume" | "list",
  "notes": "brief reason"
}}
"""

PARAMETERS_PROMPT = """
You are a BIM data analyst. The task has already been decided; fill in the query parameters.

QUESTION: "{QUESTION}"
TASK: {TASK}
INTENT NOTES: {NOTES}

## CATEGORIES (pick EXACTLY one name from this list, or null):
{CATEGORIES}

## TERM -> CATEGORY MAPPING:
{CATEGORY_ALIASES}

## AVAILABLE FILTER PARAMETERS & VALUES:
{PARAM_SAMPLES}

## AREA KEYS:
{AREA_KEYS}

## VOLUME KEYS:
{VOLUME_KEYS}

## RULES:
1. category: EXACT name from the list above, or null.
2. filterParam/filterValue: only when the question names a specific value.
3. targetParam: required for "distinct" and "group_count".
4. propsFlatKey: only for sum_area / sum_volume.
5. useSemanticSearch: true only when the question describes elements by free text that no
   filter parameter captures (e.g. "fire-rated doors near the lobby"); then set semanticQuery
   to a short description of the wanted elements and topK to how many candidates to consider.

Return ONLY JSON:
{{
  "category": "EXACT_NAME_OR_NULL",
  "filterParam": "PARAM_OR_NULL",
  "filterValue": "VALUE_OR_NULL",
  "targetParam": "PARAM_OR_NULL",
  "propsFlatKey": "KEY_OR_NULL",
  "limit": null,
  "useSemanticSearch": false,
  "semanticQuery": null,
  "topK": null
}}
"""


def numbered(values, limit=None):
    vals = list(values)[:limit] if limit else list(values)
    return "\n".join(f'{i}. "{v}"' for i, v in enumerate(vals, 1)) or "(none)"


def bullets(values, limit=30):
    return "\n".join(f"- {v}" for v in list(values)[:limit]) or "(none)"


def samples_text(param_samples, per_field=10):
    lines = []
    for k, vals in param_samples.items():
        lines.append(f"- {k}: [{', '.join(json.dumps(v, ensure_ascii=False) for v in vals[:per_field])}]")
    return "\n".join(lines) or "(none)"
