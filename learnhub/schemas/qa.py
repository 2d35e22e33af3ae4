from datetime import datetime
from typing import Optional, List, Literal

from pydantic import BaseModel, Field

from learnhub.schemas.common import Pagination


class QuestionCreate(BaseModel):
    title: str = Field(min_length=1, max_length=255)
    message: str = Field(min_length=1)


class QuestionUpdate(BaseModel):
    title: Optional[str] = Field(None, min_length=1, max_length=255)
    message: Optional[str] = Field(None, min_length=1)


class AnswerCreate(BaseModel):
    question_id: int = Field(gt=0)
    message: str = Field(min_length=1)


class AnswerUpdate(BaseModel):
    message: str = Field(min_length=1)


class QuestionOut(BaseModel):
    id: int
    student_id: int
    title: str
    message: str
    answers_count: int = 0
    created_at: datetime
    updated_at: datetime


class AnswerOut(BaseModel):
    id: int
    question_id: int
    owner_id: int
    message: str
    created_at: datetime
    updated_at: datetime


class QuestionDetailOut(QuestionOut):
    answers: List[AnswerOut] = []


class QuestionListOut(BaseModel):
    questions: List[QuestionOut]
    pagination: Pagination


class AnswerListOut(BaseModel):
    answers: List[AnswerOut]
    pagination: Pagination


class QuestionMutationOut(BaseModel):
    message: str
    question: QuestionOut


class AnswerMutationOut(BaseModel):
    message: str
    answer: AnswerOut


class ScoredAnswerOut(AnswerOut):
    relevance_score: float


class SearchMetadata(BaseModel):
    query: str
    total_results: int
    search_time_ms: int


class AnswerSearchOut(BaseModel):
    answers: List[ScoredAnswerOut]
    search_metadata: SearchMetadata
    pagination: Pagination


class QuestionSearchOut(BaseModel):
    questions: List[QuestionOut]
    search_metadata: SearchMetadata
    pagination: Pagination


class StatisticsOut(BaseModel):
    total: int
    this_month: int
    this_year: int


SortField = Literal["created_at", "updated_at", "id"]
SortOrder = Literal["asc", "desc"]
AnsweredStatus = Literal["answered", "unanswered"]
