"""
Выделение лемм из текста
"""
import re
import logging
from collections import Counter
from typing import Dict, List, Set

from ..core.errors import WrongCharacterError
from ..core.interfaces import IMorphology

logger = logging.getLogger(__name__)

# Токен должен состоять только из букв
WORD = re.compile(r"[а-яёa-z]+")


class LemmaExtractor:
    """
    Извлекает леммы из текста страницы или запроса

    Выполняет:
    1. Нормализацию (lowercase)
    2. Токенизацию по не-буквенным символам
    3. Отбрасывание токенов с цифрами и смешанными символами
    4. Приведение к нормальной форме через морфологический анализатор
    """

    def __init__(self, morphology: IMorphology):
        self.morphology = morphology

    def tokenize(self, text: str) -> List[str]:
        """Разбиение на токены, пригодные для анализатора"""
        tokens = []
        for token in re.split(r"\W+", text.lower()):
            if not token or not token.strip():
                continue
            if not WORD.fullmatch(token):
                logger.debug(f"[Lemmas] Skip token '{token}'")
                continue
            tokens.append(token)
        return tokens

    def lemma_of(self, token: str):
        """Первая нормальная форма токена или None"""
        try:
            forms = self.morphology.normal_forms(token)
        except WrongCharacterError:
            return None
        return forms[0] if forms else None

    def extract(self, text: str) -> Dict[str, int]:
        """Леммы текста с числом вхождений"""
        counts = Counter()
        for token in self.tokenize(text):
            lemma = self.lemma_of(token)
            if lemma:
                counts[lemma] += 1
        return dict(counts)

    def lemma_set(self, text: str) -> Set[str]:
        """Уникальные леммы текста (для запроса)"""
        return set(self.extract(text))
