# app.py
import logging
from datetime import datetime

from flask import Blueprint, Flask, g, jsonify, request, send_file
from flask_cors import CORS
from flask_session import Session
from pydantic import ValidationError
from werkzeug.middleware.proxy_fix import ProxyFix

import auth
import spreadsheets
import storage
from auth import require_admin, require_student
from commands import register_commands
from config import Config, DEV_SECRET, cookie_policy
from models import db
from schemas import (AdminLogin, StudentLogin, StudentCreate, CourseCreate, QuestionCreate,
                     QuestionUpdate, AttemptStart, AttemptAnswer, AttemptComplete,
                     error_details, reference_error)

logger = logging.getLogger(__name__)

api = Blueprint("api", __name__, url_prefix="/api")

XLSX_MIMETYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"


def _body():
    return request.get_json(silent=True) or {}


def _invalid(errors):
    return jsonify({"message": "Invalid input", "errors": errors}), 400


# ----------------- ADMIN AUTH -----------------
@api.post("/admin/login")
def admin_login():
    creds = AdminLogin.model_validate(_body())
    admin = storage.authenticate_admin(creds.admin_id, creds.password)
    if not admin:
        logger.info("Failed admin login for %s", creds.admin_id)
        return jsonify({"message": "Invalid credentials"}), 401

    auth.login_admin(admin)
    logger.info("Admin %s logged in", admin.admin_id)
    return jsonify({"success": True, "admin": admin.to_dict()})


@api.post("/admin/logout")
def admin_logout():
    auth.logout()
    return jsonify({"success": True})


@api.get("/admin/me")
@require_admin
def admin_me():
    admin = storage.get_admin_by_admin_id(g.identity.admin_id)
    if not admin:
        return jsonify({"message": "Admin not found"}), 404
    return jsonify(admin.to_dict())


# ----------------- STUDENT AUTH -----------------
@api.post("/student/register")
def student_register():
    data = StudentCreate.model_validate(_body())

    if storage.get_student_by_email(data.email):
        return jsonify({"message": "Student with this email already exists"}), 400
    if storage.get_student_by_student_id(data.student_id):
        return jsonify({"message": "Student ID already exists"}), 400

    student = storage.create_student(data.model_dump())
    # registering also logs the student in
    auth.login_student(student)
    logger.info("Registered student %s", student.student_id)
    return jsonify({"success": True, "student": student.to_dict()})


@api.post("/student/login")
def student_login():
    creds = StudentLogin.model_validate(_body())
    student = storage.authenticate_student(creds.email, creds.password)
    if not student:
        logger.info("Failed student login for %s", creds.email)
        return jsonify({"message": "Invalid credentials"}), 401

    auth.login_student(student)
    logger.info("Student %s logged in", student.student_id)
    return jsonify({"success": True, "student": student.to_dict()})


@api.post("/student/logout")
def student_logout():
    auth.logout()
    return jsonify({"success": True})


@api.get("/student/me")
@require_student
def student_me():
    student = storage.get_student_by_id(g.identity.student_id)
    if not student:
        return jsonify({"message": "Student not found"}), 404
    return jsonify(student.to_dict())


# ----------------- ADMIN REPORTING -----------------
@api.get("/admin/stats")
@require_admin
def admin_stats():
    return jsonify(storage.get_admin_stats())


@api.get("/admin/recent-activity")
@require_admin
def admin_recent_activity():
    return jsonify(storage.get_recent_activity())


@api.get("/admin/student-results")
@require_admin
def admin_student_results():
    return jsonify(storage.get_all_student_results())


@api.get("/admin/student-results/export")
@require_admin
def admin_export_results():
    workbook = spreadsheets.build_results_workbook(storage.get_all_student_results())
    filename = f"student_results_{datetime.utcnow():%Y%m%d}.xlsx"
    return send_file(workbook, mimetype=XLSX_MIMETYPE, as_attachment=True,
                     download_name=filename)


# ----------------- COURSES -----------------
@api.get("/courses")
def list_courses():
    return jsonify([c.to_dict() for c in storage.get_all_courses()])


@api.post("/admin/courses")
@require_admin
def create_course():
    data = CourseCreate.model_validate(_body())
    course = storage.create_course(data.model_dump())
    logger.info("Course %s created", course.name)
    return jsonify(course.to_dict())


# ----------------- QUESTIONS -----------------
@api.get("/admin/questions")
@require_admin
def admin_questions():
    return jsonify([q.to_dict() for q in storage.get_all_questions()])


@api.get("/questions/<course_id>")
@require_student
def course_questions(course_id):
    questions = storage.get_questions_by_course(course_id)
    return jsonify([q.to_student_dict() for q in questions])


@api.post("/admin/questions")
@require_admin
def create_question():
    data = QuestionCreate.model_validate(_body())
    if not storage.get_course(data.course_id):
        return _invalid(reference_error("courseId", "Course not found"))

    question = storage.create_question(data.model_dump())
    logger.info("Question %s created in course %s", question.id, question.course_id)
    return jsonify(question.to_dict())


@api.put("/admin/questions/<question_id>")
@require_admin
def update_question(question_id):
    updates = QuestionUpdate.model_validate(_body()).model_dump(exclude_unset=True,
                                                                exclude_none=True)
    if "course_id" in updates and not storage.get_course(updates["course_id"]):
        return _invalid(reference_error("courseId", "Course not found"))

    question = storage.update_question(question_id, updates)
    if question is None:
        return jsonify({"message": "Question not found"}), 404
    logger.info("Question %s updated: %s", question_id, ", ".join(sorted(updates)))
    return jsonify(question.to_dict())


@api.delete("/admin/questions/<question_id>")
@require_admin
def delete_question(question_id):
    if storage.delete_question(question_id):
        logger.info("Question %s deleted", question_id)
    return jsonify({"success": True})


# ----------------- TEST WORKFLOW -----------------
def _own_attempt(attempt_id):
    """The attempt if it belongs to the logged-in student, else None."""
    attempt = storage.get_test_attempt(attempt_id)
    if attempt is None or attempt.student_id != g.identity.student_id:
        return None
    return attempt


@api.post("/student/test/start")
@require_student
def start_test():
    # studentId always comes from the session, never the body
    data = AttemptStart.model_validate(_body())
    if not storage.get_course(data.course_id):
        return _invalid(reference_error("courseId", "Course not found"))

    attempt = storage.create_test_attempt(g.identity.student_id, data.course_id,
                                          data.total_questions)
    logger.info("Student %s started test %s", g.identity.student_id, attempt.id)
    return jsonify(attempt.to_dict())


@api.post("/student/test/answer")
@require_student
def submit_answer():
    data = AttemptAnswer.model_validate(_body())
    attempt = _own_attempt(data.test_attempt_id)
    if attempt is None:
        return jsonify({"message": "Test not found"}), 404
    if attempt.is_completed:
        return jsonify({"message": "Test already completed"}), 400

    question = storage.get_question(data.question_id)
    if question is None:
        return _invalid(reference_error("questionId", "Question not found"))

    answer = storage.save_test_answer(attempt, question, data.selected_answer)
    return jsonify(answer.to_dict())


@api.post("/student/test/complete")
@require_student
def complete_test():
    data = AttemptComplete.model_validate(_body())
    attempt = _own_attempt(data.test_attempt_id)
    if attempt is None:
        return jsonify({"message": "Test not found"}), 404
    if attempt.is_completed:
        return jsonify({"message": "Test already completed"}), 400

    # score fields are taken as reported by the client
    attempt = storage.complete_test_attempt(attempt, data.score, data.correct_answers,
                                            data.total_questions, data.time_spent)
    logger.info("Student %s completed test %s with score %s",
                g.identity.student_id, attempt.id, attempt.score)
    return jsonify(attempt.to_dict())


@api.get("/student/test/history")
@require_student
def test_history():
    history = storage.get_student_test_history(g.identity.student_id)
    return jsonify([att.to_dict() for att in history])


@api.get("/student/test/results/<test_attempt_id>")
@require_student
def test_results(test_attempt_id):
    attempt = _own_attempt(test_attempt_id)
    if attempt is None:
        return jsonify({"message": "Test not found"}), 404

    answers = storage.get_test_answers(attempt.id)
    return jsonify({
        "testAttempt": attempt.to_dict(),
        "answers": [a.to_dict() for a in answers],
    })


# ----------------- ERRORS -----------------
def register_error_handlers(app):

    @app.errorhandler(ValidationError)
    def invalid_input(e):
        return _invalid(error_details(e))

    @app.errorhandler(404)
    def not_found(e):
        return jsonify({"message": "Not found"}), 404

    @app.errorhandler(405)
    def method_not_allowed(e):
        return jsonify({"message": "Method not allowed"}), 405

    @app.errorhandler(500)
    def server_error(e):
        logger.exception("Internal Server Error: %s", e)
        db.session.rollback()
        return jsonify({"message": "Server error"}), 500


# ----------------- APP FACTORY -----------------
def create_app(config_object=Config):
    logging.basicConfig(level=logging.INFO)

    app = Flask(__name__)
    app.config.from_object(config_object)

    production = app.config.get("PRODUCTION", False)
    if not app.config.get("SECRET_KEY"):
        if production:
            raise RuntimeError("SESSION_SECRET must be set in production")
        logger.warning("SESSION_SECRET not set; using an insecure development secret")
        app.config["SECRET_KEY"] = DEV_SECRET

    app.config.update(cookie_policy(production))
    app.config["SESSION_SQLALCHEMY"] = db

    if production:
        app.wsgi_app = ProxyFix(app.wsgi_app, x_for=1, x_proto=1)

    db.init_app(app)
    with app.app_context():
        db.create_all()

    # creates the sessions table if it is missing
    Session(app)
    CORS(app, supports_credentials=True, origins=app.config["CORS_ORIGINS"])

    app.register_blueprint(api)
    register_error_handlers(app)
    register_commands(app)

    logger.info("Exam platform started (production=%s)", production)
    return app


# ----------------- Run app -----------------
if __name__ == "__main__":
    create_app().run(debug=True)
