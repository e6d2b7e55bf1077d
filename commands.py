# commands.py
import click
from flask import Flask

import spreadsheets
import storage


def register_commands(app: Flask):

    @app.cli.command("create-admin")
    @click.argument("admin_id")
    @click.option("--password", prompt=True, hide_input=True, confirmation_prompt=True)
    @click.option("--first-name", required=True)
    @click.option("--last-name", required=True)
    def create_admin(admin_id, password, first_name, last_name):
        """Create an administrator account."""
        if storage.get_admin_by_admin_id(admin_id):
            raise click.ClickException(f"Admin {admin_id} already exists")
        storage.create_admin(admin_id, password, first_name, last_name)
        click.echo(f"Created admin {admin_id}")

    @app.cli.command("import-questions")
    @click.argument("path", type=click.Path(exists=True, dir_okay=False))
    @click.option("--course", default=None, help="Put every row in this course.")
    def import_questions(path, course):
        """Import questions from an .xlsx workbook."""
        try:
            count = spreadsheets.import_questions_from_excel(path, default_course=course)
        except ValueError as e:
            raise click.ClickException(str(e))
        click.echo(f"Imported {count} questions")
