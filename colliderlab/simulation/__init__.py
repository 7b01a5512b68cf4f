from .family import FamilyParams, family_dag, family_set
from .happiness import adults, happiness_dag, sim_happiness

__all__ = [
    "FamilyParams", "family_set", "family_dag",
    "sim_happiness", "adults", "happiness_dag",
]
