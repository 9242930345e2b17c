# extensions.py

from flask_sqlalchemy import SQLAlchemy
from flask_migrate import Migrate

# Single source of truth for the db object. It is created here and bound
# to an app later by create_app().
db = SQLAlchemy()

migrate = Migrate()
