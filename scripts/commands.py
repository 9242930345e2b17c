# commands.py

import keyword
import os
import re
from string import Template

import click
from flask import current_app
from flask.cli import with_appcontext

from logging_config import get_logger

logger = get_logger(__name__)

REPOSITORY_TEMPLATE = Template('''"""
${class_name}Repository - Data access layer for ${model_name} model
"""

from sqlalchemy.orm import Session

from repositories.base_repository import BaseRepository
${model_import}


class ${class_name}Repository(BaseRepository${generic}):
    """Repository for ${model_name} data access"""

    @classmethod
    def for_session(cls, session: Session, **flags) -> '${class_name}Repository':
        """Bind the repository to ${model_name} rows on the given session."""
        return cls.for_model(session, ${model_name}, **flags)
''')


def snake_case(name: str) -> str:
    """Convert CamelCase to snake_case: BlogPost -> blog_post"""
    name = re.sub(r'(.)([A-Z][a-z]+)', r'\1_\2', name)
    return re.sub(r'([a-z0-9])([A-Z])', r'\1_\2', name).lower()


def render_repository(name: str, model_path: str = None) -> str:
    """
    Render the source of a repository module.

    Args:
        name: Entity name in CamelCase, e.g. BlogPost
        model_path: Dotted path to the model class, e.g. blog.models.BlogPost.
            Defaults to ``models.<name>``.
    """
    model_path = model_path or f'models.{name}'
    module, _, model_name = model_path.rpartition('.')
    if not module or not model_name.isidentifier():
        raise click.BadParameter(f'{model_path!r} is not a dotted path to a class', param_hint='--model')

    return REPOSITORY_TEMPLATE.substitute(
        class_name=name,
        model_name=model_name,
        model_import=f'from {module} import {model_name}',
        generic=f'[{model_name}]',
    )


def write_repository(name: str, output_dir: str, model_path: str = None, force: bool = False) -> str:
    """Write <snake_name>_repository.py into output_dir and return its path."""
    if not name.isidentifier() or keyword.iskeyword(name):
        raise click.BadParameter(f'{name!r} is not a valid class name', param_hint='NAME')

    path = os.path.join(output_dir, f'{snake_case(name)}_repository.py')
    if os.path.exists(path) and not force:
        raise click.ClickException(f'{path} already exists (use --force to overwrite)')

    source = render_repository(name, model_path)
    os.makedirs(output_dir, exist_ok=True)
    with open(path, 'w', encoding='utf-8') as handle:
        handle.write(source)

    logger.info("Repository generated", name=name, path=path)
    return path


@click.command('make-repository')
@click.argument('name')
@click.option('--model', 'model_path', default=None, help='Dotted path to the model class (default: models.<NAME>)')
@click.option('--output-dir', default=None, help='Directory for the generated module (default: REPOSITORY_OUTPUT_DIR)')
@click.option('--force', is_flag=True, help='Overwrite an existing module')
@with_appcontext
def make_repository(name, model_path, output_dir, force):
    """Generate a BaseRepository subclass for NAME"""
    output_dir = output_dir or current_app.config['REPOSITORY_OUTPUT_DIR']
    path = write_repository(name, output_dir, model_path=model_path, force=force)
    click.echo(f'Repository created: {path}')


def init_app(app):
    """Register commands with the Flask app"""
    app.cli.add_command(make_repository)
