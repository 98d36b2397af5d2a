from flask_sqlalchemy import SQLAlchemy

# The one SQLAlchemy instance; models and services import it from here.
db = SQLAlchemy()
