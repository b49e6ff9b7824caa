# Fichier: vocab_srs/db/base_class.py
from sqlalchemy.orm import DeclarativeBase


class Base(DeclarativeBase):
    """
    Base déclarative commune aux tables apprenants, fiches SRS et objectifs.
    """
