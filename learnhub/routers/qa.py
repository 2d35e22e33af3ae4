from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from learnhub.config import settings
from learnhub.database import get_db
from learnhub.schemas.common import MessageOut, paginate
from learnhub.schemas.qa import (
    QuestionCreate,
    QuestionUpdate,
    AnswerCreate,
    AnswerUpdate,
    QuestionListOut,
    QuestionDetailOut,
    QuestionMutationOut,
    AnswerListOut,
    AnswerOut,
    AnswerMutationOut,
    AnswerSearchOut,
    QuestionSearchOut,
    StatisticsOut,
    SortField,
    SortOrder,
    AnsweredStatus,
)
from learnhub.services.qa import QaFamily, QuestionService, AnswerService, CONSULTATION, FORUM
from learnhub.utils.auth import get_current_principal, require_student, require_staff
from learnhub.utils.principal import Principal


def build_router(family: QaFamily, prefix: str, tag: str) -> APIRouter:
    """Questions and answers endpoints for one Q&A family."""
    router = APIRouter(prefix=prefix, tags=[tag])
    questions = QuestionService(family)
    answers = AnswerService(family)
    label = family.label

    # ---------- questions ----------

    @router.get("/questions", response_model=QuestionListOut)
    def list_questions(
        db: Session = Depends(get_db),
        user: Principal = Depends(get_current_principal),
        student_id: Optional[int] = Query(None, description="mentor/admin only"),
        search: Optional[str] = Query(None),
        sort: SortField = Query("created_at"),
        order: SortOrder = Query("desc"),
        page: int = Query(1, ge=1),
        limit: int = Query(settings.DEFAULT_PAGE_SIZE, ge=1, le=settings.MAX_PAGE_SIZE),
    ):
        items, total = questions.list(db, user, page, limit, student_id, search, sort, order)
        return {"questions": items, "pagination": paginate(page, limit, total)}

    @router.get("/questions/my", response_model=QuestionListOut)
    def my_questions(
        db: Session = Depends(get_db),
        user: Principal = Depends(require_student),
        status: Optional[AnsweredStatus] = Query(None),
        page: int = Query(1, ge=1),
        limit: int = Query(settings.DEFAULT_PAGE_SIZE, ge=1, le=settings.MAX_PAGE_SIZE),
    ):
        items, total = questions.my_questions(db, user, page, limit, status)
        return {"questions": items, "pagination": paginate(page, limit, total)}

    @router.get("/questions/unanswered", response_model=QuestionListOut)
    def unanswered_questions(
        db: Session = Depends(get_db),
        user: Principal = Depends(require_staff),
        page: int = Query(1, ge=1),
        limit: int = Query(settings.DEFAULT_PAGE_SIZE, ge=1, le=settings.MAX_PAGE_SIZE),
    ):
        items, total = questions.unanswered(db, page, limit)
        return {"questions": items, "pagination": paginate(page, limit, total)}

    @router.get("/questions/statistics", response_model=StatisticsOut)
    def question_statistics(db: Session = Depends(get_db), user: Principal = Depends(require_staff)):
        return questions.statistics(db)

    @router.get("/questions/search", response_model=QuestionSearchOut)
    def search_questions(
        db: Session = Depends(get_db),
        user: Principal = Depends(get_current_principal),
        q: Optional[str] = Query(None, description="title or message substring"),
        student_id: Optional[int] = Query(None),
        has_answers: Optional[bool] = Query(None),
        date_from: Optional[datetime] = Query(None),
        date_to: Optional[datetime] = Query(None),
        page: int = Query(1, ge=1),
        limit: int = Query(settings.DEFAULT_PAGE_SIZE, ge=1, le=settings.MAX_PAGE_SIZE),
    ):
        result = questions.search(db, user, page, limit, q, student_id, has_answers, date_from, date_to)
        return {
            "questions": result["questions"],
            "search_metadata": result["search_metadata"],
            "pagination": paginate(page, limit, result["total"]),
        }

    @router.get("/questions/{question_id}", response_model=QuestionDetailOut)
    def get_question(question_id: int, db: Session = Depends(get_db), user: Principal = Depends(get_current_principal)):
        return questions.get(db, user, question_id)

    @router.post("/questions", response_model=QuestionMutationOut)
    def create_question(body: QuestionCreate, db: Session = Depends(get_db), user: Principal = Depends(get_current_principal)):
        q = questions.create(db, user, body)
        return {"message": f"{label} question created successfully", "question": q}

    @router.put("/questions/{question_id}", response_model=QuestionMutationOut)
    def update_question(
        question_id: int,
        body: QuestionUpdate,
        db: Session = Depends(get_db),
        user: Principal = Depends(get_current_principal),
    ):
        q = questions.update(db, user, question_id, body)
        return {"message": f"{label} question updated successfully", "question": q}

    @router.delete("/questions/{question_id}", response_model=MessageOut)
    def delete_question(question_id: int, db: Session = Depends(get_db), user: Principal = Depends(get_current_principal)):
        questions.delete(db, user, question_id)
        return {"message": f"{label} question deleted successfully"}

    # ---------- answers ----------

    @router.get("/answers", response_model=AnswerListOut)
    def list_answers(
        db: Session = Depends(get_db),
        user: Principal = Depends(get_current_principal),
        question_id: Optional[int] = Query(None),
        owner_id: Optional[int] = Query(None, description="answer author"),
        sort: SortField = Query("created_at"),
        order: SortOrder = Query("desc"),
        page: int = Query(1, ge=1),
        limit: int = Query(settings.DEFAULT_PAGE_SIZE, ge=1, le=settings.MAX_PAGE_SIZE),
    ):
        items, total = answers.list(db, user, page, limit, question_id, owner_id, sort, order)
        return {"answers": items, "pagination": paginate(page, limit, total)}

    @router.get("/answers/search", response_model=AnswerSearchOut)
    def search_answers(
        db: Session = Depends(get_db),
        user: Principal = Depends(get_current_principal),
        q: Optional[str] = Query(None, description="search terms, whitespace separated"),
        question_id: Optional[int] = Query(None),
        owner_id: Optional[int] = Query(None),
        page: int = Query(1, ge=1),
        limit: int = Query(settings.DEFAULT_PAGE_SIZE, ge=1, le=settings.MAX_PAGE_SIZE),
    ):
        result = answers.search(db, user, q, page, limit, question_id, owner_id)
        return {
            "answers": result["answers"],
            "search_metadata": result["search_metadata"],
            "pagination": paginate(page, limit, result["total"]),
        }

    @router.get("/answers/statistics", response_model=StatisticsOut)
    def answer_statistics(db: Session = Depends(get_db), user: Principal = Depends(require_staff)):
        return answers.statistics(db)

    @router.get("/answers/{answer_id}", response_model=AnswerOut)
    def get_answer(answer_id: int, db: Session = Depends(get_db), user: Principal = Depends(get_current_principal)):
        return answers.get(db, user, answer_id)

    @router.post("/answers", response_model=AnswerMutationOut)
    def create_answer(body: AnswerCreate, db: Session = Depends(get_db), user: Principal = Depends(get_current_principal)):
        a = answers.create(db, user, body)
        return {"message": f"{label} answer created successfully", "answer": a}

    @router.put("/answers/{answer_id}", response_model=AnswerMutationOut)
    def update_answer(
        answer_id: int,
        body: AnswerUpdate,
        db: Session = Depends(get_db),
        user: Principal = Depends(get_current_principal),
    ):
        a = answers.update(db, user, answer_id, body)
        return {"message": f"{label} answer updated successfully", "answer": a}

    @router.delete("/answers/{answer_id}", response_model=MessageOut)
    def delete_answer(answer_id: int, db: Session = Depends(get_db), user: Principal = Depends(get_current_principal)):
        answers.delete(db, user, answer_id)
        return {"message": f"{label} answer deleted successfully"}

    return router


consultation_router = build_router(CONSULTATION, "/consultations", "Consultations")
forum_router = build_router(FORUM, "/forum", "Forum")
