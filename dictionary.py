import os
import logging

logger = logging.getLogger(__name__)


class WordList:
    """
    Uppercase word list used for move validation and move generation.
    Besides plain membership it keeps every word prefix, which lets the
    move finder abandon a branch as soon as no word can start that way.
    """

    def __init__(self, words=()):
        self.words = set()
        self.prefixes = set()
        for word in words:
            self.add(word)

    @classmethod
    def from_file(cls, dictionary_path):
        """Reads one word per line from a text file."""
        if not os.path.exists(dictionary_path):
            raise FileNotFoundError(f"Dictionary file not found at: {dictionary_path}")
        word_list = cls()
        with open(dictionary_path, 'r', encoding='utf-8') as f:
            for word in f:
                word_list.add(word)
        logger.info("Loaded %d words from %s", len(word_list), dictionary_path)
        return word_list

    def add(self, word):
        word = word.strip().upper()
        if not word:
            return
        self.words.add(word)
        for i in range(1, len(word) + 1):
            self.prefixes.add(word[:i])

    def is_prefix(self, fragment):
        """True when some word starts with `fragment`."""
        return not fragment or fragment in self.prefixes

    def __contains__(self, word):
        return word in self.words

    def __len__(self):
        return len(self.words)
