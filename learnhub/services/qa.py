"""
Question/answer access shared by the consultation and forum families.

Both families have the same shape: a question owned by a student and
answers owned by a mentor (or admin). ``QaFamily`` describes one family;
``QuestionService`` and ``AnswerService`` are written once against it and
delegate every role decision to ``learnhub.services.ownership``.
"""
import logging
from dataclasses import dataclass
from datetime import datetime, timezone

from sqlalchemy import func, or_
from sqlalchemy.orm import Session

from learnhub.exceptions import NotFoundException, BadRequestException, MISSING_QUERY, MISSING_SEARCH_PARAMS
from learnhub.models.consultation import ConsultationQuestion, ConsultationAnswer
from learnhub.models.forum import ForumQuestion, ForumAnswer
from learnhub.schemas.qa import QuestionCreate, QuestionUpdate, AnswerCreate, AnswerUpdate
from learnhub.services import ownership
from learnhub.services.relevance import Scorer, frequency_score, presence_score, query_terms, timed
from learnhub.utils.principal import Principal

logger = logging.getLogger("learnhub.qa")


@dataclass(frozen=True)
class QaFamily:
    name: str
    label: str
    question_model: type
    answer_model: type
    # column on the answer table holding its author
    answer_owner: str
    scorer: Scorer

    def answer_owner_id(self, answer) -> int:
        return getattr(answer, self.answer_owner)

    @property
    def answer_owner_column(self):
        return getattr(self.answer_model, self.answer_owner)


CONSULTATION = QaFamily(
    name="consultation",
    label="Consultation",
    question_model=ConsultationQuestion,
    answer_model=ConsultationAnswer,
    answer_owner="mentor_id",
    scorer=frequency_score,
)

FORUM = QaFamily(
    name="forum",
    label="Forum",
    question_model=ForumQuestion,
    answer_model=ForumAnswer,
    answer_owner="user_id",
    scorer=presence_score,
)


def _statistics(db: Session, model) -> dict:
    now = datetime.now(timezone.utc)
    start_of_month = now.replace(day=1, hour=0, minute=0, second=0, microsecond=0)
    start_of_year = start_of_month.replace(month=1)

    def count(*criteria):
        return db.query(func.count(model.id)).filter(*criteria).scalar()

    return {
        "total": count(),
        "this_month": count(model.created_at >= start_of_month),
        "this_year": count(model.created_at >= start_of_year),
    }


class QuestionService:
    def __init__(self, family: QaFamily):
        self.family = family
        self.model = family.question_model

    @property
    def _label(self):
        return f"{self.family.label} question"

    def answer_counts(self, db: Session, question_ids) -> dict[int, int]:
        if not question_ids:
            return {}
        A = self.family.answer_model
        rows = (
            db.query(A.question_id, func.count(A.id))
            .filter(A.question_id.in_(question_ids))
            .group_by(A.question_id)
            .all()
        )
        return {qid: int(n) for qid, n in rows}

    def serialize(self, question, answers_count: int = 0) -> dict:
        return {
            "id": question.id,
            "student_id": question.student_id,
            "title": question.title,
            "message": question.message,
            "answers_count": answers_count,
            "created_at": question.created_at,
            "updated_at": question.updated_at,
        }

    def _page(self, db: Session, q, page: int, limit: int, order_by):
        total = q.count()
        rows = q.order_by(*order_by).offset((page - 1) * limit).limit(limit).all()
        counts = self.answer_counts(db, [r.id for r in rows])
        return [self.serialize(r, counts.get(r.id, 0)) for r in rows], total

    def _visible(self, db: Session, principal: Principal):
        """Questions the principal may see, or None when a student owns none."""
        Q = self.model
        q = db.query(Q)

        visible = ownership.visibility_filter(db, principal, Q)
        if visible is not None:
            if not visible:
                return None
            q = q.filter(Q.id.in_(visible))
        return q

    def _text_filter(self, text: str):
        Q = self.model
        needle = text.lower()
        return or_(
            func.lower(Q.title).contains(needle, autoescape=True),
            func.lower(Q.message).contains(needle, autoescape=True),
        )

    def list(
        self,
        db: Session,
        principal: Principal,
        page: int,
        limit: int,
        student_id: int | None = None,
        search: str | None = None,
        sort: str = "created_at",
        order: str = "desc",
    ):
        Q = self.model
        q = self._visible(db, principal)
        if q is None:
            return [], 0

        # only staff may pick whose questions to list
        if student_id and ownership.is_unrestricted(principal):
            q = q.filter(Q.student_id == student_id)

        if search and search.strip():
            q = q.filter(self._text_filter(search.strip()))

        col = getattr(Q, sort)
        return self._page(db, q, page, limit, [col.asc() if order == "asc" else col.desc(), Q.id.desc()])

    def search(
        self,
        db: Session,
        principal: Principal,
        page: int,
        limit: int,
        query: str | None = None,
        student_id: int | None = None,
        has_answers: bool | None = None,
        date_from: datetime | None = None,
        date_to: datetime | None = None,
    ) -> dict:
        """
        Filtered question search.

        At least one criterion is required. ``query`` matches title or
        message as a case-insensitive substring; the remaining filters
        narrow further. Students still only see their own questions.
        """
        text = (query or "").strip()
        if not text and not student_id and has_answers is None and date_from is None and date_to is None:
            raise BadRequestException("Search query is required", reason=MISSING_SEARCH_PARAMS)

        Q = self.model
        questions, total, elapsed = [], 0, 0

        q = self._visible(db, principal)
        if q is not None:
            if text:
                q = q.filter(self._text_filter(text))
            if student_id:
                q = q.filter(Q.student_id == student_id)
            if has_answers is True:
                q = q.filter(Q.answers.any())
            elif has_answers is False:
                q = q.filter(~Q.answers.any())
            if date_from is not None:
                q = q.filter(Q.created_at >= date_from)
            if date_to is not None:
                q = q.filter(Q.created_at <= date_to)

            with timed() as timer:
                questions, total = self._page(db, q, page, limit, [Q.created_at.desc(), Q.id.desc()])
            elapsed = timer.elapsed_ms

        return {
            "questions": questions,
            "search_metadata": {"query": text, "total_results": total, "search_time_ms": elapsed},
            "total": total,
        }

    def _get(self, db: Session, question_id: int):
        question = db.query(self.model).filter(self.model.id == question_id).first()
        if not question:
            raise NotFoundException(f"{self._label} not found")
        return question

    def get(self, db: Session, principal: Principal, question_id: int) -> dict:
        question = self._get(db, question_id)
        ownership.ensure_can_view(principal, question.student_id, f"You can only view your own {self._label.lower()}s")

        answers = sorted(question.answers, key=lambda a: (a.created_at, a.id))
        out = self.serialize(question, len(answers))
        out["answers"] = [AnswerService(self.family).serialize(a) for a in answers]
        return out

    def create(self, db: Session, principal: Principal, data: QuestionCreate):
        ownership.ensure_can_create_question(principal, f"Only students can create {self._label.lower()}s")

        question = self.model(student_id=principal.id, title=data.title, message=data.message)
        db.add(question)
        db.commit()
        db.refresh(question)

        logger.info("%s %s created by student %s", self._label, question.id, principal.id)
        return self.serialize(question)

    def update(self, db: Session, principal: Principal, question_id: int, data: QuestionUpdate):
        question = self._get(db, question_id)
        ownership.ensure_can_mutate(principal, question.student_id, f"You can only update your own {self._label.lower()}s")

        for field, value in data.model_dump(exclude_unset=True, exclude_none=True).items():
            setattr(question, field, value)
        question.updated_at = datetime.now(timezone.utc)
        db.commit()
        db.refresh(question)

        logger.info("%s %s updated by user %s", self._label, question_id, principal.id)
        return self.serialize(question, len(question.answers))

    def delete(self, db: Session, principal: Principal, question_id: int):
        question = self._get(db, question_id)
        ownership.ensure_can_mutate(principal, question.student_id, f"You can only delete your own {self._label.lower()}s")

        db.delete(question)
        db.commit()
        logger.info("%s %s deleted by user %s", self._label, question_id, principal.id)

    def my_questions(self, db: Session, principal: Principal, page: int, limit: int, status: str | None = None):
        Q = self.model
        q = db.query(Q).filter(Q.student_id == principal.id)
        if status == "answered":
            q = q.filter(Q.answers.any())
        elif status == "unanswered":
            q = q.filter(~Q.answers.any())
        return self._page(db, q, page, limit, [Q.created_at.desc(), Q.id.desc()])

    def unanswered(self, db: Session, page: int, limit: int):
        Q = self.model
        q = db.query(Q).filter(~Q.answers.any())
        return self._page(db, q, page, limit, [Q.created_at.desc(), Q.id.desc()])

    def statistics(self, db: Session) -> dict:
        return _statistics(db, self.model)


class AnswerService:
    def __init__(self, family: QaFamily):
        self.family = family
        self.model = family.answer_model

    @property
    def _label(self):
        return f"{self.family.label} answer"

    def serialize(self, answer) -> dict:
        return {
            "id": answer.id,
            "question_id": answer.question_id,
            "owner_id": self.family.answer_owner_id(answer),
            "message": answer.message,
            "created_at": answer.created_at,
            "updated_at": answer.updated_at,
        }

    def _scoped(self, db: Session, principal: Principal, question_id: int | None, owner_id: int | None):
        """Base query after visibility and filters, or None when nothing can match."""
        A = self.model
        q = db.query(A)

        visible = ownership.visibility_filter(db, principal, self.family.question_model)
        if visible is not None:
            if not visible:
                return None
            q = q.filter(A.question_id.in_(visible))

        if question_id:
            q = q.filter(A.question_id == question_id)
        if owner_id:
            q = q.filter(self.family.answer_owner_column == owner_id)
        return q

    def list(
        self,
        db: Session,
        principal: Principal,
        page: int,
        limit: int,
        question_id: int | None = None,
        owner_id: int | None = None,
        sort: str = "created_at",
        order: str = "desc",
    ):
        q = self._scoped(db, principal, question_id, owner_id)
        if q is None:
            return [], 0

        A = self.model
        col = getattr(A, sort)
        total = q.count()
        rows = (
            q.order_by(col.asc() if order == "asc" else col.desc(), A.id.desc())
            .offset((page - 1) * limit)
            .limit(limit)
            .all()
        )
        return [self.serialize(a) for a in rows], total

    def _get(self, db: Session, answer_id: int):
        answer = db.query(self.model).filter(self.model.id == answer_id).first()
        if not answer:
            raise NotFoundException(f"{self._label} not found")
        return answer

    def get(self, db: Session, principal: Principal, answer_id: int) -> dict:
        answer = self._get(db, answer_id)
        ownership.ensure_can_view(
            principal, answer.question.student_id, "You can only view answers to your own questions"
        )
        return self.serialize(answer)

    def create(self, db: Session, principal: Principal, data: AnswerCreate):
        ownership.ensure_can_create_answer(principal, f"Only mentors or admins can create {self._label.lower()}s")

        Q = self.family.question_model
        if db.query(Q.id).filter(Q.id == data.question_id).first() is None:
            raise NotFoundException(f"{self.family.label} question not found")

        answer = self.model(question_id=data.question_id, message=data.message)
        setattr(answer, self.family.answer_owner, principal.id)
        db.add(answer)
        db.commit()
        db.refresh(answer)

        logger.info("%s %s created on question %s by user %s", self._label, answer.id, data.question_id, principal.id)
        return self.serialize(answer)

    def update(self, db: Session, principal: Principal, answer_id: int, data: AnswerUpdate):
        answer = self._get(db, answer_id)
        ownership.ensure_can_mutate(
            principal, self.family.answer_owner_id(answer), "You can only update your own answers"
        )

        answer.message = data.message
        answer.updated_at = datetime.now(timezone.utc)
        db.commit()
        db.refresh(answer)

        logger.info("%s %s updated by user %s", self._label, answer_id, principal.id)
        return self.serialize(answer)

    def delete(self, db: Session, principal: Principal, answer_id: int):
        answer = self._get(db, answer_id)
        ownership.ensure_can_mutate(
            principal, self.family.answer_owner_id(answer), "You can only delete your own answers"
        )

        db.delete(answer)
        db.commit()
        logger.info("%s %s deleted by user %s", self._label, answer_id, principal.id)

    def search(
        self,
        db: Session,
        principal: Principal,
        query: str | None,
        page: int,
        limit: int,
        question_id: int | None = None,
        owner_id: int | None = None,
    ) -> dict:
        terms = query_terms(query or "")
        if not terms:
            raise BadRequestException("Search query is required", reason=MISSING_QUERY)
        query = query.strip()

        A = self.model
        answers, total, elapsed = [], 0, 0

        q = self._scoped(db, principal, question_id, owner_id)
        if q is not None:
            # the whole query must appear; terms only drive the score
            q = q.filter(func.lower(A.message).contains(query.lower(), autoescape=True))
            with timed() as timer:
                total = q.count()
                rows = (
                    q.order_by(A.created_at.desc(), A.id.desc())
                    .offset((page - 1) * limit)
                    .limit(limit)
                    .all()
                )
            elapsed = timer.elapsed_ms
            for a in rows:
                out = self.serialize(a)
                out["relevance_score"] = self.family.scorer(query, a.message)
                answers.append(out)

        return {
            "answers": answers,
            "search_metadata": {"query": query, "total_results": total, "search_time_ms": elapsed},
            "total": total,
        }

    def statistics(self, db: Session) -> dict:
        return _statistics(db, self.model)
