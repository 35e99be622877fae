from pydantic import BaseModel, Field, field_validator
from typing import Optional, List, Dict, Any, Literal, Union
from datetime import date, datetime
from enum import Enum

# ============ CONSTANTS ============

# Default expense categories, in the order used for round-robin normalization
EXPENSE_CATEGORIES = [
    "Food",
    "Transport",
    "Shopping",
    "Bills",
    "Entertainment",
    "Health",
    "Other"
]

DEFAULT_SYSTEM_PROMPT = (
    "You are a helpful personal finance assistant. Be concise, practical and actionable. "
    "Offer steps, budgets and simple rules the user can follow."
)

# ============ ENUMS ============
class MoodEnum(str, Enum):
    happy = "happy"
    neutral = "neutral"
    stressed = "stressed"
    regret = "regret"

class ToneEnum(str, Enum):
    concise = "concise"
    friendly = "friendly"
    formal = "formal"

# ============ TRANSACTION SCHEMAS ============
class Transaction(BaseModel):
    id: Union[str, int]
    amount: float = Field(..., ge=0, description="Expense amount (never negative)")
    category: str = Field(..., min_length=1, description="Free-text category label")
    date: datetime = Field(..., description="When the expense happened")
    title: Optional[str] = None
    tags: Optional[List[str]] = None
    mood: MoodEnum = MoodEnum.neutral
    confidence: int = Field(100, ge=0, le=100, description="Lower when the category was inferred")
    predicted: bool = False
    anomaly: bool = False

    @field_validator('category', mode='before')
    @classmethod
    def strip_category(cls, v):
        return v.strip() if isinstance(v, str) else v

    class Config:
        use_enum_values = True

class CategoryTotal(BaseModel):
    name: str
    value: float

class TrendPoint(BaseModel):
    date: str = Field(..., description="Day label in MM-DD form")
    spend: float
    predicted: bool = False

# ============ EXPENSE API SCHEMAS ============
class ExpenseCreate(BaseModel):
    title: Optional[str] = Field(None, max_length=200)
    amount: float = Field(..., ge=0)
    category: Optional[str] = Field(None, min_length=1)
    date: Optional[datetime] = None
    mood: Optional[MoodEnum] = None
    confidence: Optional[int] = Field(None, ge=0, le=100)

    @field_validator('category', mode='before')
    @classmethod
    def blank_category_is_missing(cls, v):
        if isinstance(v, str):
            return v.strip() or None
        return v

class ExpenseDelete(BaseModel):
    id: Union[int, str]

class ExpenseResponse(BaseModel):
    id: int
    title: Optional[str] = None
    amount: float
    category: Optional[str] = None
    date: datetime
    mood: Optional[str] = None
    confidence: Optional[int] = None

    class Config:
        from_attributes = True

# ============ BUDGET & GOAL SCHEMAS ============
class Budget(BaseModel):
    category: str = Field(..., description="Budget category from predefined list")
    limit: float = Field(..., ge=0)
    rollover: Optional[bool] = None
    smart_limit: Optional[float] = Field(None, alias="smartLimit", ge=0, description="Engine-suggested limit")
    priority: Optional[Literal["high", "medium", "low"]] = None

    @field_validator('category')
    @classmethod
    def validate_category(cls, v):
        if v not in EXPENSE_CATEGORIES:
            raise ValueError(f'Category must be one of: {", ".join(EXPENSE_CATEGORIES)}')
        return v

    class Config:
        populate_by_name = True

class FinancialGoal(BaseModel):
    id: str
    title: str = Field(..., min_length=1, max_length=100)
    target: float = Field(..., gt=0)
    current: float = Field(default=0.0, ge=0)
    deadline: date
    category: str
    priority: int = 1

class FinancialHealthScore(BaseModel):
    overall: int = Field(..., ge=0, le=100)
    spending: int = Field(..., ge=0, le=100)
    saving: int = Field(..., ge=0, le=100)
    budgeting: int = Field(..., ge=0, le=100)
    planning: int = Field(..., ge=0, le=100)

class KpiSummary(BaseModel):
    total_spend: float
    projected_monthly: float
    spend_trend: Literal["up", "down"]
    category_count: int
    transaction_count: int
    health_score: int
    health_trend: Literal["up", "down", "stable"]
    savings_rate: float

# ============ AI RESPONSE SCHEMAS ============
class SpendingPattern(BaseModel):
    pattern: str
    confidence: int = Field(..., ge=0, le=100)
    description: str
    suggestion: str

class ExpensePrediction(BaseModel):
    category: str
    predicted_amount: float = Field(..., ge=0)
    confidence: int = Field(..., ge=0, le=100)
    pattern: str

class PatternsResponse(BaseModel):
    patterns: List[SpendingPattern]
    predictions: List[ExpensePrediction]

# ============ INSIGHTS SCHEMAS ============
class InsightsRequest(BaseModel):
    transactions: List[Transaction] = Field(default_factory=list)
    budgets: Optional[List[Budget]] = Field(None, description="Omit to use the default budgets")
    goals: Optional[List[FinancialGoal]] = Field(None, description="Omit to use the default goals")
    month: Optional[str] = Field(None, pattern=r"^\d{4}-\d{2}$", description="Month filter, YYYY-MM")
    category: Optional[str] = Field(None, description="Category filter; 'All' disables it")
    search: Optional[str] = None
    window_days: int = Field(12, ge=1, le=90)
    horizon_days: int = Field(5, ge=0, le=30)

class InsightsResponse(BaseModel):
    generated_at: datetime
    transactions: List[Transaction]
    totals: List[CategoryTotal]
    total_spend: float
    trend: List[TrendPoint]
    anomalies: List[Transaction]
    health: FinancialHealthScore
    kpis: KpiSummary

class BudgetOptimizationRequest(BaseModel):
    budgets: List[Budget]
    category: str
    category_spend: Optional[float] = Field(None, ge=0, description="Spend to base the limit on")
    transactions: List[Transaction] = Field(default_factory=list)
    buffer_ratio: float = Field(1.10, gt=0)

class BudgetOptimizationResponse(BaseModel):
    budgets: List[Budget]
    smart_limit: float
    suggestion: str

class CategorizeRequest(BaseModel):
    title: Optional[str] = None
    selected_category: str = Field(EXPENSE_CATEGORIES[0], alias="selectedCategory")

    class Config:
        populate_by_name = True

class CategorizeResponse(BaseModel):
    category: str
    confidence: int

# ============ CHAT SCHEMAS ============

class Message(BaseModel):
    id: str
    role: Literal["system", "user", "assistant"]
    content: str
    ts: datetime
    pinned: Optional[bool] = None

class Chat(BaseModel):
    id: str
    title: str
    created_at: datetime = Field(..., alias="createdAt")
    messages: List[Message] = Field(default_factory=list)

    class Config:
        populate_by_name = True

class AssistantSettings(BaseModel):
    dark: bool = True
    system_prompt: str = Field(DEFAULT_SYSTEM_PROMPT, alias="systemPrompt")
    tone: ToneEnum = ToneEnum.concise
    palette_index: int = Field(0, ge=0, alias="paletteIndex")
    stream_enabled: bool = Field(True, alias="streamEnabled")
    max_tokens: int = Field(512, gt=0, alias="maxTokens")
    animations_enabled: bool = Field(True, alias="animationsEnabled")

    class Config:
        populate_by_name = True
        use_enum_values = True

class ChatHistoryItem(BaseModel):
    role: Literal["system", "user", "assistant"]
    content: str

class ChatRequest(BaseModel):
    message: str = Field("", description="User message content")
    chat_id: Optional[str] = Field(None, alias="chatId")
    system_prompt: Optional[str] = Field(None, alias="systemPrompt")
    tone: Optional[ToneEnum] = None
    stream: bool = False
    max_tokens: Optional[int] = Field(None, gt=0, alias="maxTokens")
    history: Optional[List[ChatHistoryItem]] = None

    class Config:
        populate_by_name = True
        use_enum_values = True

class ChatReply(BaseModel):
    reply: str
    model_usage: Optional[Dict[str, Any]] = None

class ChatSendResult(BaseModel):
    accepted: bool
    warning: Optional[str] = None
    state: Optional[str] = Field(None, description="Final assembler state")
    user_message: Optional[Message] = None
    assistant_message: Optional[Message] = None
