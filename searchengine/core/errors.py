"""
Ошибки поискового движка

Каждая ошибка несёт человекочитаемое сообщение и HTTP-код,
с которым её отдаёт API.
"""


class SearchEngineError(Exception):
    """Базовая ошибка движка"""
    status_code = 400
    default_message = "Ошибка поискового движка"

    def __init__(self, message: str = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class AlreadyRunningError(SearchEngineError):
    """Индексация уже идёт"""
    default_message = "Индексация уже запущена"


class NotRunningError(SearchEngineError):
    """Индексация не запущена"""
    default_message = "Индексация не запущена"


class OutOfScopeError(SearchEngineError):
    """Страница вне сайтов из конфигурации"""
    default_message = (
        "Данная страница находится за пределами сайтов, "
        "указанных в конфигурационном файле"
    )


class NotIndexedError(SearchEngineError):
    """Сайт не найден или не проиндексирован"""
    default_message = "Сайт не найден или не проиндексирован"


class NoIndexedSitesError(SearchEngineError):
    """Нет ни одного проиндексированного сайта"""
    default_message = "Нет доступных проиндексированных сайтов"


class NoLemmasError(SearchEngineError):
    """Из запроса не удалось выделить леммы"""
    default_message = "Не удалось выделить леммы из поискового запроса"


class PageFetchError(SearchEngineError):
    """Ошибка загрузки страницы"""
    status_code = 500
    default_message = "Ошибка при индексации страницы"


class StorageError(SearchEngineError):
    """Ошибка хранилища"""
    status_code = 500
    default_message = "Ошибка при работе с базой данных"


class LemmatizerError(SearchEngineError):
    """Морфологический анализатор недоступен"""
    status_code = 500
    default_message = "Ошибка лемматизации"


class WrongCharacterError(Exception):
    """Слово не из алфавита анализатора"""
    pass
