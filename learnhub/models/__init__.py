# import every model so Base.metadata knows all tables before create_all
from learnhub.models.user import User
from learnhub.models.course import Course, CourseMaterial, CourseMentor
from learnhub.models.course_progress import CourseProgress
from learnhub.models.certificate import Certificate
from learnhub.models.consultation import ConsultationQuestion, ConsultationAnswer
from learnhub.models.forum import ForumQuestion, ForumAnswer
