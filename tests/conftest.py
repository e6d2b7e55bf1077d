import pytest

import storage
from app import create_app
from config import TestingConfig
from models import db

ADMIN_PASSWORD = "admin123"
STUDENT_PASSWORD = "secret-pass"


@pytest.fixture(scope="session")
def app():
    # Flask-Session binds its model to the shared db once, so build the app once
    return create_app(TestingConfig)


@pytest.fixture(autouse=True)
def clean_tables(app):
    yield
    with app.app_context():
        db.session.remove()
        for table in reversed(db.metadata.sorted_tables):
            db.session.execute(table.delete())
        db.session.commit()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def admin(app):
    with app.app_context():
        return storage.create_admin("admin", ADMIN_PASSWORD, "Ada", "Lovelace").to_dict()


@pytest.fixture
def admin_client(app, admin):
    client = app.test_client()
    resp = client.post("/api/admin/login", json={"adminId": "admin", "password": ADMIN_PASSWORD})
    assert resp.status_code == 200
    return client


@pytest.fixture
def course(app):
    with app.app_context():
        return storage.create_course({"name": "Biology", "category": "Science"}).to_dict()


@pytest.fixture
def questions(app, course):
    rows = [
        ("What carries oxygen in blood?", "Plasma", "Red cells", "Platelets", "Lymph", "B"),
        ("Powerhouse of the cell?", "Nucleus", "Ribosome", "Mitochondria", "Golgi", "C"),
    ]
    created = []
    with app.app_context():
        for text, a, b, c, d, correct in rows:
            q = storage.create_question({
                "course_id": course["id"], "question_text": text,
                "option_a": a, "option_b": b, "option_c": c, "option_d": d,
                "correct_answer": correct,
            })
            created.append(q.to_dict())
    return created


def register_student(client, student_id="S1", email="s1@x.com", password=STUDENT_PASSWORD):
    return client.post("/api/student/register", json={
        "studentId": student_id,
        "email": email,
        "password": password,
        "firstName": "Sam",
        "lastName": "Student",
    })


@pytest.fixture
def register():
    return register_student


@pytest.fixture
def student_client(app):
    client = app.test_client()
    resp = register_student(client)
    assert resp.status_code == 200
    return client
