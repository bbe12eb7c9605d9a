from app.db.models.access_codes import AccessCode
from app.db.models.code_pools import CodePool, CodePoolCourse, CodePoolMaterial
from app.db.models.code_redemptions import CodeRedemption
from app.db.models.colleges import College
from app.db.models.course_files import CourseFile
from app.db.models.courses import Course
from app.db.models.lectures import Lecture
from app.db.models.materials import Material
from app.db.models.questions import Question
from app.db.models.reconciliation_runs import ReconciliationRun
from app.db.models.students import Student
from app.db.models.universities import University
from app.db.models.videos import Video

__all__ = [
    "AccessCode",
    "CodePool",
    "CodePoolCourse",
    "CodePoolMaterial",
    "CodeRedemption",
    "College",
    "Course",
    "CourseFile",
    "Lecture",
    "Material",
    "Question",
    "ReconciliationRun",
    "Student",
    "University",
    "Video",
]
