# spreadsheets.py
import logging
import os
from io import BytesIO

import pandas as pd
from openpyxl.utils import get_column_letter

import storage
from models import OPTIONS

logger = logging.getLogger(__name__)

RESULTS_SHEET = "results"

RESULT_COLUMNS = {
    "studentNumber": "Student ID",
    "studentName": "Name",
    "email": "Email",
    "courseName": "Course",
    "startedAt": "Started At",
    "completedAt": "Completed At",
    "score": "Score",
    "correctAnswers": "Correct",
    "totalQuestions": "Total Questions",
    "timeSpent": "Time Spent (s)",
    "isCompleted": "Completed",
}

QUESTION_COLUMNS = ["question_text", "option_a", "option_b", "option_c", "option_d",
                    "correct_answer"]


# ----------------- export results -----------------
def build_results_workbook(results):
    """
    Writes student results into a single-sheet workbook.
    Returns a BytesIO positioned at the start.
    """
    df = pd.DataFrame(results, columns=list(RESULT_COLUMNS))
    df = df.rename(columns=RESULT_COLUMNS)

    output = BytesIO()
    with pd.ExcelWriter(output, engine="openpyxl") as writer:
        df.to_excel(writer, index=False, sheet_name=RESULTS_SHEET)

        # size columns to content
        worksheet = writer.sheets[RESULTS_SHEET]
        for i, col in enumerate(df.columns, start=1):
            values = df[col].map(lambda v: len(str(v)) if pd.notna(v) else 0)
            width = max(values.max() if len(values) else 0, len(col)) + 2
            worksheet.column_dimensions[get_column_letter(i)].width = width

    output.seek(0)
    logger.info("Exported %d result rows", len(df))
    return output


# ----------------- import questions -----------------
def _cell(row, name):
    value = row.get(name, "")
    if pd.isna(value):
        return ""
    text = str(value).strip()
    # numeric cells come back as floats
    if text.endswith(".0") and isinstance(value, float):
        text = text[:-2]
    return text


def import_questions_from_excel(path, default_course=None):
    """
    Creates a question for every usable row of the workbook at ``path``.

    Each row names its course in a ``course`` column unless ``default_course``
    is given; courses are created on first use. Returns the number imported.
    """
    if not os.path.exists(path):
        raise FileNotFoundError(path)

    df = pd.read_excel(path)
    df.columns = df.columns.str.strip().str.lower()
    logger.info("Reading %d rows from %s", len(df), path)

    missing = [col for col in QUESTION_COLUMNS if col not in df.columns]
    if missing:
        raise ValueError(f"Missing columns: {', '.join(missing)}")

    imported = 0
    for idx, row in df.iterrows():
        fields = {col: _cell(row, col) for col in QUESTION_COLUMNS}
        fields["correct_answer"] = fields["correct_answer"].upper()
        course_name = default_course or _cell(row, "course")

        if not course_name or not all(fields[col] for col in QUESTION_COLUMNS[:5]):
            logger.warning("Row %d: skipping, blank question, option or course", idx)
            continue
        if fields["correct_answer"] not in OPTIONS:
            logger.warning("Row %d: skipping, bad correct answer %r", idx, fields["correct_answer"])
            continue

        course = storage.get_course_by_name(course_name)
        if course is None:
            course = storage.create_course({"name": course_name})
            logger.info("Created course %s", course_name)

        storage.create_question(dict(fields, course_id=course.id))
        imported += 1

    logger.info("Questions imported: %d", imported)
    return imported
