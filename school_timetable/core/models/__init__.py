from school_timetable.core.models.academic_year import AcademicYear
from school_timetable.core.models.class_model import SchoolClass
from school_timetable.core.models.section_model import Section
from school_timetable.core.models.school_subject import SchoolSubject
from school_timetable.core.models.class_subject import ClassSubject
from school_timetable.core.models.teacher import Teacher
from school_timetable.core.models.period import Period
from school_timetable.core.models.timetable import Timetable, TimetableEntry

__all__ = [
    "AcademicYear",
    "SchoolClass",
    "Section",
    "SchoolSubject",
    "ClassSubject",
    "Teacher",
    "Period",
    "Timetable",
    "TimetableEntry",
]
