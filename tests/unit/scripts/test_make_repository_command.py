"""
Tests for the `flask make-repository` generator
"""

import ast

import click
import pytest

from scripts.commands import render_repository, snake_case, write_repository


class TestRenderRepository:

    @pytest.mark.parametrize('name, expected', [
        ('Post', 'post'),
        ('BlogPost', 'blog_post'),
        ('HTTPLog', 'http_log'),
    ])
    def test_snake_case(self, name, expected):
        assert snake_case(name) == expected

    def test_renders_valid_module(self):
        source = render_repository('BlogPost', 'blog.models.BlogPost')

        tree = ast.parse(source)
        classes = [node.name for node in tree.body if isinstance(node, ast.ClassDef)]
        assert classes == ['BlogPostRepository']
        assert 'from blog.models import BlogPost' in source
        assert 'class BlogPostRepository(BaseRepository[BlogPost]):' in source
        assert 'return cls.for_model(session, BlogPost, **flags)' in source

    def test_default_model_path(self):
        assert 'from models import Invoice' in render_repository('Invoice')

    def test_rejects_bad_model_path(self):
        with pytest.raises(click.BadParameter):
            render_repository('Invoice', 'Invoice')


class TestWriteRepository:

    def test_writes_file(self, tmp_path):
        path = write_repository('BlogPost', str(tmp_path), model_path='blog.models.BlogPost')

        assert path == str(tmp_path / 'blog_post_repository.py')
        assert 'BlogPostRepository' in (tmp_path / 'blog_post_repository.py').read_text()

    def test_refuses_to_overwrite(self, tmp_path):
        write_repository('Post', str(tmp_path))

        with pytest.raises(click.ClickException, match='already exists'):
            write_repository('Post', str(tmp_path))

    def test_force_overwrites(self, tmp_path):
        target = tmp_path / 'post_repository.py'
        target.write_text('stale')

        write_repository('Post', str(tmp_path), force=True)

        assert 'PostRepository' in target.read_text()

    @pytest.mark.parametrize('name', ['9Lives', 'class', 'my-post'])
    def test_rejects_invalid_names(self, tmp_path, name):
        with pytest.raises(click.BadParameter):
            write_repository(name, str(tmp_path))


class TestMakeRepositoryCommand:

    def test_cli_generates_into_output_dir(self, app, tmp_path):
        runner = app.test_cli_runner()

        result = runner.invoke(args=['make-repository', 'Comment', '--output-dir', str(tmp_path)])

        assert result.exit_code == 0
        assert 'Repository created' in result.output
        assert (tmp_path / 'comment_repository.py').exists()

    def test_cli_uses_configured_output_dir(self, app, tmp_path, monkeypatch):
        monkeypatch.setitem(app.config, 'REPOSITORY_OUTPUT_DIR', str(tmp_path / 'generated'))
        runner = app.test_cli_runner()

        result = runner.invoke(args=['make-repository', 'Tag', '--model', 'tests.fixtures.models.Tag'])

        assert result.exit_code == 0
        generated = (tmp_path / 'generated' / 'tag_repository.py').read_text()
        assert 'from tests.fixtures.models import Tag' in generated

    def test_cli_reports_existing_file(self, app, tmp_path):
        (tmp_path / 'tag_repository.py').write_text('keep me')
        runner = app.test_cli_runner()

        result = runner.invoke(args=['make-repository', 'Tag', '--output-dir', str(tmp_path)])

        assert result.exit_code != 0
        assert 'already exists' in result.output
        assert (tmp_path / 'tag_repository.py').read_text() == 'keep me'
