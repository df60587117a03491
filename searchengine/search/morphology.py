"""
Морфологический анализатор русского языка на pymorphy3
"""
import re
import logging
from typing import List, Optional

import pymorphy3

from ..core.errors import LemmatizerError, WrongCharacterError
from ..core.interfaces import IMorphology

logger = logging.getLogger(__name__)

RUSSIAN_WORD = re.compile(r"[а-яё]+")


class RussianMorphology(IMorphology):
    """
    Приведение русских слов к нормальной форме

    Слово в латинице или со смешанным алфавитом отклоняется
    через WrongCharacterError.
    """

    _shared: Optional["RussianMorphology"] = None

    def __init__(self):
        try:
            self.analyzer = pymorphy3.MorphAnalyzer(lang="ru")
        except Exception as e:
            logger.error(f"[Morphology] Failed to load dictionaries: {e}")
            raise LemmatizerError(f"Ошибка лемматизации: {e}")

    @classmethod
    def shared(cls) -> "RussianMorphology":
        """Общий экземпляр: словари грузятся долго"""
        if cls._shared is None:
            cls._shared = cls()
        return cls._shared

    def normal_forms(self, word: str) -> List[str]:
        if not RUSSIAN_WORD.fullmatch(word):
            raise WrongCharacterError(word)

        forms = []
        for parse in self.analyzer.parse(word):
            if parse.normal_form not in forms:
                forms.append(parse.normal_form)
        return forms
