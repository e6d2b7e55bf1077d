# models.py
import uuid
from datetime import datetime

from flask_sqlalchemy import SQLAlchemy

db = SQLAlchemy()

OPTIONS = ("A", "B", "C", "D")


def new_id():
    return str(uuid.uuid4())


def _iso(value):
    return value.isoformat() if value else None


class Admin(db.Model):
    __tablename__ = "admins"

    id = db.Column(db.String(36), primary_key=True, default=new_id)
    admin_id = db.Column(db.String(50), unique=True, nullable=False)
    password = db.Column(db.String(255), nullable=False)  # werkzeug hash
    first_name = db.Column(db.String(100), nullable=False)
    last_name = db.Column(db.String(100), nullable=False)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    def to_dict(self):
        return {
            "id": self.id,
            "adminId": self.admin_id,
            "firstName": self.first_name,
            "lastName": self.last_name,
        }


class Student(db.Model):
    __tablename__ = "students"

    id = db.Column(db.String(36), primary_key=True, default=new_id)
    student_id = db.Column(db.String(50), unique=True, nullable=False)
    email = db.Column(db.String(200), unique=True, nullable=False)
    password = db.Column(db.String(255), nullable=False)  # werkzeug hash
    first_name = db.Column(db.String(100), nullable=False)
    last_name = db.Column(db.String(100), nullable=False)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    attempts = db.relationship("TestAttempt", back_populates="student")

    @property
    def full_name(self):
        return f"{self.first_name} {self.last_name}"

    def to_dict(self):
        return {
            "id": self.id,
            "studentId": self.student_id,
            "firstName": self.first_name,
            "lastName": self.last_name,
            "email": self.email,
        }


class Course(db.Model):
    __tablename__ = "courses"

    id = db.Column(db.String(36), primary_key=True, default=new_id)
    name = db.Column(db.String(200), nullable=False)
    category = db.Column(db.String(100))
    description = db.Column(db.Text)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    questions = db.relationship("Question", back_populates="course")

    def to_dict(self):
        return {
            "id": self.id,
            "name": self.name,
            "category": self.category,
            "description": self.description,
            "createdAt": _iso(self.created_at),
        }


class Question(db.Model):
    __tablename__ = "questions"

    id = db.Column(db.String(36), primary_key=True, default=new_id)
    course_id = db.Column(db.String(36), db.ForeignKey("courses.id"), nullable=False)
    question_text = db.Column(db.Text, nullable=False)
    option_a = db.Column(db.String(500), nullable=False)
    option_b = db.Column(db.String(500), nullable=False)
    option_c = db.Column(db.String(500), nullable=False)
    option_d = db.Column(db.String(500), nullable=False)
    correct_answer = db.Column(db.String(1), nullable=False)   # 'A'/'B'/'C'/'D'
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    course = db.relationship("Course", back_populates="questions")

    def to_dict(self):
        return {
            "id": self.id,
            "courseId": self.course_id,
            "questionText": self.question_text,
            "optionA": self.option_a,
            "optionB": self.option_b,
            "optionC": self.option_c,
            "optionD": self.option_d,
            "correctAnswer": self.correct_answer,
            "createdAt": _iso(self.created_at),
        }

    def to_student_dict(self):
        # never include correctAnswer here
        return {
            "id": self.id,
            "questionText": self.question_text,
            "optionA": self.option_a,
            "optionB": self.option_b,
            "optionC": self.option_c,
            "optionD": self.option_d,
        }


class TestAttempt(db.Model):
    __tablename__ = "test_attempts"

    id = db.Column(db.String(36), primary_key=True, default=new_id)
    student_id = db.Column(db.String(36), db.ForeignKey("students.id"), nullable=False)
    course_id = db.Column(db.String(36), db.ForeignKey("courses.id"), nullable=False)
    started_at = db.Column(db.DateTime, default=datetime.utcnow)
    completed_at = db.Column(db.DateTime, nullable=True)
    score = db.Column(db.Integer, nullable=True)
    correct_answers = db.Column(db.Integer, nullable=True)
    total_questions = db.Column(db.Integer, nullable=True)
    time_spent = db.Column(db.Integer, nullable=True)  # seconds
    is_completed = db.Column(db.Boolean, default=False, nullable=False)

    student = db.relationship("Student", back_populates="attempts")
    course = db.relationship("Course")
    answers = db.relationship("TestAnswer", back_populates="attempt",
                              order_by="TestAnswer.answered_at")

    def to_dict(self):
        return {
            "id": self.id,
            "studentId": self.student_id,
            "courseId": self.course_id,
            "courseName": self.course.name if self.course else None,
            "startedAt": _iso(self.started_at),
            "completedAt": _iso(self.completed_at),
            "score": self.score,
            "correctAnswers": self.correct_answers,
            "totalQuestions": self.total_questions,
            "timeSpent": self.time_spent,
            "isCompleted": self.is_completed,
        }


class TestAnswer(db.Model):
    __tablename__ = "test_answers"

    id = db.Column(db.String(36), primary_key=True, default=new_id)
    test_attempt_id = db.Column(db.String(36), db.ForeignKey("test_attempts.id"), nullable=False)
    # questions can be deleted while answers referencing them remain
    question_id = db.Column(db.String(36), db.ForeignKey("questions.id", ondelete="SET NULL"),
                            nullable=True)
    selected_answer = db.Column(db.String(1), nullable=True)  # None when skipped
    is_correct = db.Column(db.Boolean, default=False, nullable=False)
    answered_at = db.Column(db.DateTime, default=datetime.utcnow)

    attempt = db.relationship("TestAttempt", back_populates="answers")

    def to_dict(self):
        return {
            "id": self.id,
            "testAttemptId": self.test_attempt_id,
            "questionId": self.question_id,
            "selectedAnswer": self.selected_answer,
            "isCorrect": self.is_correct,
            "answeredAt": _iso(self.answered_at),
        }
