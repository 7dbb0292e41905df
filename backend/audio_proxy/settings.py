"""Runtime configuration for the audio proxy."""
from __future__ import annotations

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_ALLOWED_DOMAINS: tuple[str, ...] = (
    # QQ Music
    "qq.com",
    "qqmusic.qq.com",
    "dl.stream.qqmusic.qq.com",
    "ws.stream.qqmusic.qq.com",
    "isure.stream.qqmusic.qq.com",
    "aqqmusic.tc.qq.com",
    "streamoc.music.tc.qq.com",
    "c.y.qq.com",
    "wx.music.tc.qq.com",
    # NetEase Cloud Music
    "music.126.net",
    "m7.music.126.net",
    "m8.music.126.net",
    "m10.music.126.net",
    "163.com",
    # Kugou
    "kugou.com",
    "trackercdn.kugou.com",
    # Kuwo
    "kuwo.cn",
    "sycdn.kuwo.cn",
    "other.web.nf01.sycdn.kuwo.cn",
    # Migu
    "migu.cn",
    "freetyst.nf.migu.cn",
    # Generic CDNs
    "clouddn.com",
    "qiniucdn.com",
    "aliyuncs.com",
)


class ProxySettings(BaseSettings):
    """Environment-aware settings for the audio proxy service."""

    allowed_domains: list[str] = Field(
        default_factory=lambda: list(DEFAULT_ALLOWED_DOMAINS),
        description="Domain suffixes that may be used as proxy targets.",
    )
    request_timeout: float = Field(
        default=30.0,
        gt=0,
        description="Seconds to wait for the upstream response before giving up.",
    )
    chunk_size: int = Field(
        default=64 * 1024,
        gt=0,
        description="Read size in bytes used when relaying upstream bodies.",
    )
    service_name: str = Field(
        default="HMusic Audio Proxy", description="Service name reported by /health."
    )
    service_version: str = Field(
        default="1.0.0", description="Version string reported by /health."
    )
    host: str = Field(default="0.0.0.0", description="Interface the server binds to.")
    port: int = Field(default=8787, description="Port the server listens on.")
    log_level: str = Field(default="info", description="Root logging level.")

    model_config = SettingsConfigDict(
        env_prefix="AUDIO_PROXY_",
        env_file=".env",
        env_file_encoding="utf-8",
    )
