"""Book name resolution for free-text and abbreviated book names.

Turns what people actually type ("Gén.", "flp", "1 cor", "JUAN",
"Éxodo") into the canonical unaccented names of the canon table
("Genesis", "Filipenses", "1 Corintios", "Juan", "Exodo").

Resolution order, first match wins:
1. Case-insensitive exact match against the abbreviation table
2. Same, with a trailing period appended ("Fil" -> "Fil.")
3. Same, with a trailing period removed ("Gen." -> "Gen")
4. Accent-folded match against canonical names (and folded abbreviations)
5. Passthrough: the accent-folded input, unchanged

The resolver never raises. An unrecognized name comes back as a
best-effort string that is not a canonical book; callers that need to
know can check it with canon.get_book().
"""

from __future__ import annotations

import logging
import re
import unicodedata

from bibleplan.canon import BOOK_NAMES

logger = logging.getLogger(__name__)


# Common Spanish abbreviations (spelling variant -> canonical name).
# Keys keep their original casing and accents; lookups are case-insensitive.
ABBREVIATIONS: dict[str, str] = {
    # Pentateuch
    "Gén.": "Genesis",
    "Gen.": "Genesis",
    "Gn.": "Genesis",
    "Gen": "Genesis",
    "Gn": "Genesis",
    "Exo.": "Exodo",
    "Ex.": "Exodo",
    "Ex": "Exodo",
    "Lev.": "Levitico",
    "Lv.": "Levitico",
    "Lev": "Levitico",
    "Lv": "Levitico",
    "Num.": "Numeros",
    "Nm.": "Numeros",
    "Num": "Numeros",
    "Nm": "Numeros",
    "Deut.": "Deuteronomio",
    "Dt.": "Deuteronomio",
    "Deut": "Deuteronomio",
    "Dt": "Deuteronomio",
    # Historical books
    "Jos.": "Josue",
    "Jos": "Josue",
    "Jue.": "Jueces",
    "Jue": "Jueces",
    "1 Sam.": "1 Samuel",
    "1 sm.": "1 Samuel",
    "1 Sa.": "1 Samuel",
    "2 Sam.": "2 Samuel",
    "2 sm.": "2 Samuel",
    "2 Sa.": "2 Samuel",
    "1 Rey.": "1 Reyes",
    "1 re.": "1 Reyes",
    "2 Rey.": "2 Reyes",
    "2 re.": "2 Reyes",
    "1 Cron.": "1 Cronicas",
    "1 cr.": "1 Cronicas",
    "2 Cron.": "2 Cronicas",
    "2 cr.": "2 Cronicas",
    "Neh.": "Nehemias",
    "Ne": "Nehemias",
    "Est.": "Ester",
    "Est": "Ester",
    # Poetry and wisdom
    "Sal.": "Salmos",
    "Sal": "Salmos",
    "Prov.": "Proverbios",
    "Pr.": "Proverbios",
    "Prov": "Proverbios",
    "Ecl.": "Eclesiastes",
    "Ec.": "Eclesiastes",
    "Cant.": "Cantares",
    "Cnt.": "Cantares",
    # Prophets
    "Isa.": "Isaias",
    "Is.": "Isaias",
    "Is": "Isaias",
    "Jer.": "Jeremias",
    "Jr.": "Jeremias",
    "Lam.": "Lamentaciones",
    "Lm.": "Lamentaciones",
    "Eze.": "Ezequiel",
    "Ez.": "Ezequiel",
    "Ez": "Ezequiel",
    "Dan.": "Daniel",
    "Dn.": "Daniel",
    "Dan": "Daniel",
    "Os.": "Oseas",
    "Os": "Oseas",
    "Hab.": "Habacuc",
    "Hab": "Habacuc",
    "Sof.": "Sofonias",
    "Sof": "Sofonias",
    "Hag.": "Hageo",
    "Hg.": "Hageo",
    "Zac.": "Zacarias",
    "Zac": "Zacarias",
    "Mal.": "Malaquias",
    "Mal": "Malaquias",
    # Gospels and Acts
    "Mat.": "Mateo",
    "Mt.": "Mateo",
    "Mt": "Mateo",
    "Mar.": "Marcos",
    "Mr.": "Marcos",
    "Marc": "Marcos",
    "Luc.": "Lucas",
    "Lc.": "Lucas",
    "Lc": "Lucas",
    "Jn.": "Juan",
    "Jno.": "Juan",
    "Juan": "Juan",
    "Hech.": "Hechos",
    "Hch.": "Hechos",
    "Hch": "Hechos",
    "Ac.": "Hechos",
    "Hech": "Hechos",
    "Ac": "Hechos",
    # Pauline epistles
    "Rom.": "Romanos",
    "Rm.": "Romanos",
    "Rom": "Romanos",
    "Rm": "Romanos",
    "1 Cor.": "1 Corintios",
    "1 co.": "1 Corintios",
    "1 Cor": "1 Corintios",
    "1 Co": "1 Corintios",
    "2 Cor.": "2 Corintios",
    "2 co.": "2 Corintios",
    "2 Cor": "2 Corintios",
    "2 Co": "2 Corintios",
    "Gal.": "Galatas",
    "Gl.": "Galatas",
    "Gal": "Galatas",
    "Gl": "Galatas",
    "Ef.": "Efesios",
    "Efe.": "Efesios",
    "Ef": "Efesios",
    "Efe": "Efesios",
    "Fil.": "Filipenses",
    "Flp.": "Filipenses",
    "Fil": "Filipenses",
    "Php": "Filipenses",
    "Flp": "Filipenses",
    "Col.": "Colosenses",
    "Col": "Colosenses",
    "1 Tes.": "1 Tesalonicenses",
    "1 ts.": "1 Tesalonicenses",
    "1 Tes": "1 Tesalonicenses",
    "1 Ts": "1 Tesalonicenses",
    "2 Tes.": "2 Tesalonicenses",
    "2 ts.": "2 Tesalonicenses",
    "2 Tes": "2 Tesalonicenses",
    "2 Ts": "2 Tesalonicenses",
    "1 Tim.": "1 Timoteo",
    "1 ti.": "1 Timoteo",
    "1 Tim": "1 Timoteo",
    "1 Ti": "1 Timoteo",
    "2 Tim.": "2 Timoteo",
    "2 ti.": "2 Timoteo",
    "2 Tim": "2 Timoteo",
    "2 Ti": "2 Timoteo",
    "Tit.": "Tito",
    "Tit": "Tito",
    "Flm.": "Filemon",
    "Flm": "Filemon",
    # General epistles and Revelation
    "Heb.": "Hebreos",
    "Heb": "Hebreos",
    "Sant.": "Santiago",
    "Stg.": "Santiago",
    "Sant": "Santiago",
    "Stg": "Santiago",
    "1 Ped.": "1 Pedro",
    "1 pe.": "1 Pedro",
    "1 Ped": "1 Pedro",
    "1 Pe": "1 Pedro",
    "2 Ped.": "2 Pedro",
    "2 pe.": "2 Pedro",
    "2 Ped": "2 Pedro",
    "2 Pe": "2 Pedro",
    "1 Jn.": "1 Juan",
    "1 jn": "1 Juan",
    "1 Jn": "1 Juan",
    "2 Jn.": "2 Juan",
    "2 jn": "2 Juan",
    "2 Jn": "2 Juan",
    "3 Jn.": "3 Juan",
    "3 jn": "3 Juan",
    "3 Jn": "3 Juan",
    "Jud.": "Judas",
    "Jud": "Judas",
    "Apoc.": "Apocalipsis",
    "Ap.": "Apocalipsis",
    "Ap": "Apocalipsis",
    "Apoc": "Apocalipsis",
}

_WHITESPACE = re.compile(r"\s+")


def fold_diacritics(text: str) -> str:
    """Strip accents and other combining marks from text.

    "Génesis" -> "Genesis", "Éxodo" -> "Exodo", "Filemón" -> "Filemon".
    Case is preserved.
    """
    # Normalize to NFD to separate base chars from diacritics
    nfd = unicodedata.normalize("NFD", text)

    # Remove combining marks (category Mn = Mark, nonspacing)
    stripped = "".join(c for c in nfd if unicodedata.category(c) != "Mn")

    return unicodedata.normalize("NFC", stripped)


class BookNameResolver:
    """Resolves book names through lookup tables built once at construction.

    Each stage is a single dict lookup on a lowercased key, so a
    resolution costs a handful of hash lookups regardless of table size.
    When two table keys differ only in case, the first one listed wins.
    """

    def __init__(
        self,
        abbreviations: dict[str, str] | None = None,
        book_names: list[str] | None = None,
    ):
        abbreviations = ABBREVIATIONS if abbreviations is None else abbreviations
        book_names = BOOK_NAMES if book_names is None else book_names

        self._index: dict[str, str] = {}
        self._folded_index: dict[str, str] = {}
        for key, book in abbreviations.items():
            lowered = key.lower()
            self._index.setdefault(lowered, book)
            self._folded_index.setdefault(fold_diacritics(lowered), book)

        self._canonical: dict[str, str] = {
            fold_diacritics(name).lower(): name for name in book_names
        }
        self._names = frozenset(book_names)

    def _lookup_with_period_variants(
        self, table: dict[str, str], lowered: str
    ) -> str | None:
        """Exact, then period added, then period removed."""
        found = table.get(lowered)
        if found:
            return found

        if not lowered.endswith("."):
            return table.get(lowered + ".")

        return table.get(lowered[:-1])

    def resolve(self, name: str) -> str:
        """Resolve a book name or abbreviation to its canonical name.

        Args:
            name: Free-text book name ("Gén.", "fil", "1 Corintios")

        Returns:
            Canonical book name, or the accent-folded input when nothing
            matched.
        """
        if not name:
            return ""

        clean = _WHITESPACE.sub(" ", name.strip())

        found = self._lookup_with_period_variants(self._index, clean.lower())
        if found:
            return found

        folded = fold_diacritics(clean)
        folded_lower = folded.lower()

        canonical = self._canonical.get(folded_lower)
        if canonical:
            return canonical

        found = self._lookup_with_period_variants(self._folded_index, folded_lower)
        if found:
            return found

        logger.debug(f"Unresolved book name {name!r}, passing through {folded!r}")
        return folded

    def is_known(self, name: str) -> bool:
        """True if name resolves to a canonical book."""
        return self.resolve(name) in self._names


_default_resolver = BookNameResolver()


def resolve_book_name(name: str) -> str:
    """Resolve a book name with the default tables.

    Examples:
        >>> resolve_book_name("Fil.")
        'Filipenses'
        >>> resolve_book_name("flp")
        'Filipenses'
        >>> resolve_book_name("Génesis")
        'Genesis'
    """
    return _default_resolver.resolve(name)
