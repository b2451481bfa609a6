# File: site_search/lemmatizer.py
"""site_search.lemmatizer: Перевод текста в последовательность лемм.

Текст приводится к нижнему регистру и режется на слова по любым небуквенным
символам. Кириллицу разбирает pymorphy3, латиницу разбирает NLTK
(``pos_tag`` + ``WordNetLemmatizer``). Служебные части речи (предлоги,
союзы, междометия, частицы) отбрасываются. Повторы сохраняются, результат
является потоком вхождений, а не множеством.
"""

from __future__ import annotations

import re
import threading
from collections import Counter
from dataclasses import dataclass
from typing import List, Optional, Protocol, Sequence

from site_search.logger import logger

__all__ = [
    "WordForm",
    "MorphAnalyzer",
    "RussianAnalyzer",
    "EnglishAnalyzer",
    "Lemmatizer",
]

_WORD_RE = re.compile(r"[^\W\d_]+")
_CYRILLIC_RE = re.compile(r"[а-яё]")
_LATIN_RE = re.compile(r"[a-z]")


@dataclass(frozen=True, slots=True)
class WordForm:
    """Один вариант разбора слова: нормальная форма и признак служебной части речи."""

    normal_form: str
    functional: bool


class MorphAnalyzer(Protocol):
    def parse(self, word: str) -> Sequence[WordForm]: ...


class RussianAnalyzer:
    """Морфологический анализатор для кириллицы на базе pymorphy3."""

    FUNCTIONAL_POS = frozenset({"PREP", "CONJ", "INTJ", "PRCL"})

    def __init__(self) -> None:
        import pymorphy3

        self._morph = pymorphy3.MorphAnalyzer()

    def parse(self, word: str) -> List[WordForm]:
        return [
            WordForm(p.normal_form, p.tag.POS in self.FUNCTIONAL_POS)
            for p in self._morph.parse(word)
        ]


class EnglishAnalyzer:
    """Morphological analyzer for Latin-script words backed by NLTK.

    Penn tags ``IN``, ``CC``, ``UH``, ``RP`` and ``TO`` are treated as
    functional. Tagger and WordNet data are downloaded on first use.
    """

    FUNCTIONAL_TAGS = frozenset({"IN", "CC", "UH", "RP", "TO"})
    _RESOURCES = (
        ("taggers/averaged_perceptron_tagger_eng", "averaged_perceptron_tagger_eng"),
        ("corpora/wordnet", "wordnet"),
    )
    _data_lock = threading.Lock()
    _data_ready = False

    def __init__(self) -> None:
        from nltk.stem import WordNetLemmatizer

        self._lemmatizer = WordNetLemmatizer()

    @classmethod
    def _ensure_data(cls) -> None:
        import nltk

        with cls._data_lock:
            if cls._data_ready:
                return
            for resource, package in cls._RESOURCES:
                try:
                    nltk.data.find(resource)
                except LookupError:
                    logger.info("Загрузка данных NLTK: %s", package)
                    nltk.download(package, quiet=True)
            cls._data_ready = True

    @staticmethod
    def _wordnet_pos(tag: str) -> str:
        if tag.startswith("V"):
            return "v"
        if tag.startswith("J"):
            return "a"
        if tag.startswith("R"):
            return "r"
        return "n"

    def parse(self, word: str) -> List[WordForm]:
        import nltk

        self._ensure_data()
        tag = nltk.pos_tag([word])[0][1]
        normal = self._lemmatizer.lemmatize(word, pos=self._wordnet_pos(tag))
        return [WordForm(normal, tag in self.FUNCTIONAL_TAGS)]


class Lemmatizer:
    """Чистое преобразование текст → список лемм.

    Анализаторы можно передать явно (тесты так и делают); по умолчанию они
    создаются лениво при первом слове соответствующей письменности.
    """

    def __init__(
        self,
        cyrillic: Optional[MorphAnalyzer] = None,
        latin: Optional[MorphAnalyzer] = None,
    ) -> None:
        self._cyrillic = cyrillic
        self._latin = latin
        self._init_lock = threading.Lock()

    @property
    def cyrillic(self) -> MorphAnalyzer:
        if self._cyrillic is None:
            with self._init_lock:
                if self._cyrillic is None:
                    self._cyrillic = RussianAnalyzer()
        return self._cyrillic

    @property
    def latin(self) -> MorphAnalyzer:
        if self._latin is None:
            with self._init_lock:
                if self._latin is None:
                    self._latin = EnglishAnalyzer()
        return self._latin

    @staticmethod
    def split_words(text: str) -> List[str]:
        return _WORD_RE.findall(text.lower())

    def extract_lemmas(self, text: str) -> List[str]:
        """Возвращает леммы всех значимых слов *text* в порядке появления."""
        lemmas: List[str] = []
        for word in self.split_words(text):
            lemma = self._lemmatize_word(word)
            if lemma is not None:
                lemmas.append(lemma)
        return lemmas

    def count_lemmas(self, text: str) -> Counter[str]:
        """Лемма → число её вхождений в *text*."""
        return Counter(self.extract_lemmas(text))

    def _lemmatize_word(self, word: str) -> Optional[str]:
        if _CYRILLIC_RE.search(word):
            analyzer = self.cyrillic
        elif _LATIN_RE.search(word):
            analyzer = self.latin
        else:
            return None
        try:
            forms = analyzer.parse(word)
        except Exception as exc:
            logger.debug("Ошибка обработки слова %r: %s", word, exc)
            return None
        if not forms or any(f.functional for f in forms):
            return None
        return forms[0].normal_form
