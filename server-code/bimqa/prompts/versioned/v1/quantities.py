# bimqa/prompts/versioned/v1/quantities.py

QUANTITY_PROMPT = """
You are a BIM data analyst. Extract and calculate the total {NAME} from the provided data.

User question: {QUESTION}

Query context:
- Category filter: {CATEGORY}
- Property key: {PROPS_KEY}
- Filter: {FILTER}

Data rows ({RAW_FIELD}, name, type_name, level_number):
{ROWS}

Instructions:
1. Parse EACH {RAW_FIELD} value:
   - Numbers: 123.45
   - Strings with units: "123.45 {UNIT}", "123.45{UNIT_ASCII}"
   - Comma decimals: "123,45"
2. Sum all valid values; skip values that are not numbers.
3. count = number of rows that were summed.
4. Return JSON:
{{
  "{TOTAL_FIELD}": number,
  "count": number,
  "unit": "{UNIT}",
  "notes": "brief explanation in {LANGUAGE}"
}}
"""
