# bimqa/settings.py
from __future__ import annotations
from typing import Literal, Optional
from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field, AliasChoices


class Settings(BaseSettings):
    # pydantic v2 config
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    # --- Gemini ---
    GEMINI_API_KEY: str
    # generation model used for planning, quantity extraction and answers
    GEMINI_MODEL: str = Field(default="gemini-1.5-pro", validation_alias=AliasChoices("GEMINI_MODEL", "GEMINI_MODEL_ANALYST"))
    # used once when the primary model is rate limited
    GEMINI_FALLBACK_MODEL: str = "gemini-1.5-flash"
    GEMINI_EMBED_MODEL: str = Field(default="text-embedding-004", validation_alias=AliasChoices("GEMINI_EMBED_MODEL", "GEMINI_MODEL_EMBEDDING"))
    EMBED_DIM: int = 768

    # --- Database (read-only) ---
    DB_URL_RO: str
    DEFAULT_SQL_LIMIT: int = Field(default=5000, validation_alias=AliasChoices("DEFAULT_SQL_LIMIT", "SQL_DEFAULT_LIMIT"))
    STATEMENT_TIMEOUT_MS: int = Field(default=20000, validation_alias=AliasChoices("STATEMENT_TIMEOUT_MS", "SQL_STATEMENT_TIMEOUT_MS"))  # 20s

    # --- Pinecone (candidate restriction) ---
    USE_SEMANTIC_SEARCH: bool = Field(default=False, validation_alias=AliasChoices("USE_SEMANTIC_SEARCH", "USE_RAG"))
    PINECONE_API_KEY: Optional[str] = None
    PINECONE_INDEX: Optional[str] = None
    PINECONE_NAMESPACE: Optional[str] = None

    # --- Planning ---
    # unified: one analysis call; two_stage: hint + intent + parameters
    REASONING_STRATEGY: Literal["unified", "two_stage"] = "unified"
    # llm: delegate parsing/summing to Gemini; local: sum in-process
    QUANTITY_STRATEGY: Literal["llm", "local"] = "llm"
    PLAN_DEFAULT_LIMIT: int = 100
    PLAN_MAX_LIMIT: int = 1000
    SEMANTIC_TOP_K: int = 50
    SEMANTIC_MAX_TOP_K: int = 500
    SUM_MAX_ROWS: int = 200

    # --- Metadata discovery bounds (None = unbounded) ---
    META_SAMPLE_LIMIT: Optional[int] = None
    META_SCAN_LIMIT: Optional[int] = None
    META_KEY_LIMIT: Optional[int] = None

    ANSWER_LANGUAGE: str = "Vietnamese"
