"""
Data-access layer.

Route handlers and CLI commands go through these functions rather than
touching the session directly. Every write commits before returning.
"""
import logging
from datetime import datetime
from typing import Optional

from sqlalchemy import func
from werkzeug.security import check_password_hash, generate_password_hash

from models import db, Admin, Student, Course, Question, TestAttempt, TestAnswer

logger = logging.getLogger(__name__)

RECENT_ACTIVITY_LIMIT = 10


# ----------------- admins -----------------
def get_admin_by_admin_id(admin_id: str) -> Optional[Admin]:
    return Admin.query.filter_by(admin_id=admin_id).first()


def create_admin(admin_id, password, first_name, last_name) -> Admin:
    admin = Admin(
        admin_id=admin_id,
        password=generate_password_hash(password),
        first_name=first_name,
        last_name=last_name,
    )
    db.session.add(admin)
    db.session.commit()
    return admin


def authenticate_admin(admin_id: str, password: str) -> Optional[Admin]:
    admin = get_admin_by_admin_id(admin_id)
    if admin and check_password_hash(admin.password, password):
        return admin
    return None


# ----------------- students -----------------
def get_student_by_id(student_pk: str) -> Optional[Student]:
    return db.session.get(Student, student_pk)


def get_student_by_email(email: str) -> Optional[Student]:
    return Student.query.filter_by(email=email.lower()).first()


def get_student_by_student_id(student_id: str) -> Optional[Student]:
    return Student.query.filter_by(student_id=student_id).first()


def create_student(data: dict) -> Student:
    student = Student(
        student_id=data["student_id"],
        email=data["email"].lower(),
        password=generate_password_hash(data["password"]),
        first_name=data["first_name"],
        last_name=data["last_name"],
    )
    db.session.add(student)
    db.session.commit()
    return student


def authenticate_student(email: str, password: str) -> Optional[Student]:
    student = get_student_by_email(email)
    if student and check_password_hash(student.password, password):
        return student
    return None


# ----------------- courses -----------------
def get_all_courses():
    return Course.query.order_by(Course.name.asc()).all()


def get_course(course_id: str) -> Optional[Course]:
    return db.session.get(Course, course_id)


def get_course_by_name(name: str) -> Optional[Course]:
    return Course.query.filter_by(name=name).first()


def create_course(data: dict) -> Course:
    course = Course(**data)
    db.session.add(course)
    db.session.commit()
    return course


# ----------------- questions -----------------
def get_all_questions():
    return Question.query.order_by(Question.created_at.asc()).all()


def get_question(question_id: str) -> Optional[Question]:
    return db.session.get(Question, question_id)


def get_questions_by_course(course_id: str):
    return (Question.query.filter_by(course_id=course_id)
            .order_by(Question.created_at.asc()).all())


def create_question(data: dict) -> Question:
    question = Question(**data)
    db.session.add(question)
    db.session.commit()
    return question


def update_question(question_id: str, updates: dict) -> Optional[Question]:
    question = get_question(question_id)
    if question is None:
        return None
    for key, value in updates.items():
        if hasattr(question, key):
            setattr(question, key, value)
    db.session.commit()
    return question


def delete_question(question_id: str) -> bool:
    question = get_question(question_id)
    if question is None:
        return False
    TestAnswer.query.filter_by(question_id=question_id).update({"question_id": None})
    db.session.delete(question)
    db.session.commit()
    return True


# ----------------- test attempts -----------------
def create_test_attempt(student_id: str, course_id: str, total_questions=None) -> TestAttempt:
    attempt = TestAttempt(
        student_id=student_id,
        course_id=course_id,
        total_questions=total_questions,
    )
    db.session.add(attempt)
    db.session.commit()
    return attempt


def get_test_attempt(attempt_id: str) -> Optional[TestAttempt]:
    return db.session.get(TestAttempt, attempt_id)


def save_test_answer(attempt: TestAttempt, question: Question, selected_answer) -> TestAnswer:
    """Stores one answer; correctness is judged against the stored question."""
    answer = TestAnswer(
        test_attempt_id=attempt.id,
        question_id=question.id,
        selected_answer=selected_answer,
        is_correct=bool(selected_answer) and selected_answer == question.correct_answer,
    )
    db.session.add(answer)
    db.session.commit()
    return answer


def complete_test_attempt(attempt: TestAttempt, score, correct_answers,
                          total_questions, time_spent) -> TestAttempt:
    attempt.completed_at = datetime.utcnow()
    attempt.score = score
    attempt.correct_answers = correct_answers
    attempt.total_questions = total_questions
    attempt.time_spent = time_spent
    attempt.is_completed = True
    db.session.commit()
    return attempt


def get_student_test_history(student_id: str):
    return (TestAttempt.query.filter_by(student_id=student_id)
            .order_by(TestAttempt.started_at.desc()).all())


def get_test_answers(attempt_id: str):
    return (TestAnswer.query.filter_by(test_attempt_id=attempt_id)
            .order_by(TestAnswer.answered_at.asc()).all())


# ----------------- reporting -----------------
def get_admin_stats() -> dict:
    completed = TestAttempt.query.filter_by(is_completed=True)
    average = (db.session.query(func.avg(TestAttempt.score))
               .filter(TestAttempt.is_completed.is_(True)).scalar())
    return {
        "totalStudents": Student.query.count(),
        "totalCourses": Course.query.count(),
        "totalQuestions": Question.query.count(),
        "totalTestAttempts": TestAttempt.query.count(),
        "completedTests": completed.count(),
        "averageScore": round(float(average), 2) if average is not None else 0,
    }


def get_recent_activity(limit=RECENT_ACTIVITY_LIMIT):
    attempts = (TestAttempt.query.filter_by(is_completed=True)
                .order_by(TestAttempt.completed_at.desc()).limit(limit).all())
    return [
        {
            "id": att.id,
            "studentName": att.student.full_name,
            "studentId": att.student.student_id,
            "courseName": att.course.name,
            "score": att.score,
            "completedAt": att.completed_at.isoformat(),
        }
        for att in attempts
    ]


def get_all_student_results():
    attempts = TestAttempt.query.order_by(TestAttempt.started_at.desc()).all()
    results = []
    for att in attempts:
        row = att.to_dict()
        row["studentName"] = att.student.full_name
        row["studentNumber"] = att.student.student_id
        row["email"] = att.student.email
        results.append(row)
    return results
