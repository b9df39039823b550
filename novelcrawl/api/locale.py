"""Localized error messages for the HTTP boundary.

Readers of the web front end use Chinese or Japanese, so every
``ErrorKind`` has a message in both. The locale comes from the request's
``Accept-Language`` header and defaults to Chinese.
"""

from novelcrawl.core.errors import ErrorKind

SUPPORTED_LOCALES = ("zh", "ja")
DEFAULT_LOCALE = "zh"

VALIDATION_MESSAGES: dict[str, str] = {
    "zh": "缺少必要参数或参数无效",
    "ja": "必須パラメータが不足しているか、無効です",
}

ERROR_MESSAGES: dict[ErrorKind, dict[str, str]] = {
    ErrorKind.TRANSPORT: {
        "zh": "网络请求失败，请稍后重试",
        "ja": "ネットワーク要求に失敗しました。しばらくしてから再試行してください",
    },
    ErrorKind.FORBIDDEN: {
        "zh": "网站拒绝访问，可能触发了反爬虫机制",
        "ja": "サイトにアクセスを拒否されました。ボット対策が作動した可能性があります",
    },
    ErrorKind.NOT_FOUND: {
        "zh": "页面不存在，请检查URL",
        "ja": "ページが存在しません。URLを確認してください",
    },
    ErrorKind.MALFORMED_RESPONSE: {
        "zh": "网站返回的内容不是有效的网页",
        "ja": "サイトの応答が有効なHTMLではありません",
    },
    ErrorKind.NO_LINKS_FOUND: {
        "zh": "未找到章节链接，请确认这是小说目录页",
        "ja": "章のリンクが見つかりません。目次ページか確認してください",
    },
    ErrorKind.NO_CONTENT_EXTRACTED: {
        "zh": "无法提取章节内容",
        "ja": "章の本文を抽出できませんでした",
    },
    ErrorKind.TOO_MANY_FAILURES: {
        "zh": "失败章节过多，网站可能限制了访问",
        "ja": "失敗した章が多すぎます。サイトがアクセスを制限している可能性があります",
    },
    ErrorKind.EMPTY_RESULT: {
        "zh": "没有成功下载任何章节",
        "ja": "ダウンロードに成功した章がありません",
    },
}


def select_locale(accept_language: str | None) -> str:
    """Pick the first supported locale from an Accept-Language header.

    Example:
        >>> select_locale("ja-JP,ja;q=0.9,en;q=0.8")
        'ja'
    """
    if not accept_language:
        return DEFAULT_LOCALE
    for part in accept_language.split(","):
        tag = part.split(";")[0].strip().lower()
        primary = tag.split("-")[0]
        if primary in SUPPORTED_LOCALES:
            return primary
    return DEFAULT_LOCALE


def error_message(kind: ErrorKind, locale: str) -> str:
    """Return the message for ``kind`` in ``locale``, falling back to Chinese."""
    messages = ERROR_MESSAGES[kind]
    return messages.get(locale, messages[DEFAULT_LOCALE])
