"""
Configuration management.
"""
from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import SecretStr
from typing import Optional, Literal, Dict


class Settings(BaseSettings):
    """Library settings."""
    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=False,
        extra="ignore",
    )

    # 日志配置
    log_level: str = "INFO"
    log_format: Literal["json", "text"] = "json"
    debug: bool = False

    # HTTP 配置
    http_timeout: float = 10.0
    http_proxy: Optional[str] = None
    user_agent: str = "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36"
    referer: str = "https://www.bilibili.com"

    # B站登录凭证（配置 SESSDATA 即视为已登录）
    bilibili_sessdata: Optional[SecretStr] = None
    bilibili_bili_jct: Optional[SecretStr] = None
    bilibili_buvid3: Optional[SecretStr] = None

    # 弹幕配置
    prefer_pb_danmaku: bool = True  # True: 分段 protobuf 接口；False: 旧版 list.so
    danmaku_segment_seconds: int = 360
    danmaku_pace_min_ms: int = 100
    danmaku_pace_max_ms: int = 500

    # 列表分页
    music_list_page_size: int = 100
    favorite_page_size: int = 36

    # 下载输出
    output_dir: str = "downloads"

    @property
    def is_login(self) -> bool:
        """是否配置了登录凭证"""
        if self.bilibili_sessdata is None:
            return False
        return bool(self.bilibili_sessdata.get_secret_value())

    def cookies(self) -> Dict[str, str]:
        """返回已配置的 B站 cookies"""
        pairs = {
            "SESSDATA": self.bilibili_sessdata,
            "bili_jct": self.bilibili_bili_jct,
            "buvid3": self.bilibili_buvid3,
        }
        return {
            name: secret.get_secret_value()
            for name, secret in pairs.items()
            if secret is not None and secret.get_secret_value()
        }


settings = Settings()


def validate_settings() -> None:
    """基础配置校验"""
    if settings.danmaku_segment_seconds <= 0:
        raise RuntimeError("DANMAKU_SEGMENT_SECONDS must be positive")

    if settings.danmaku_pace_min_ms > settings.danmaku_pace_max_ms:
        raise RuntimeError("DANMAKU_PACE_MIN_MS must not exceed DANMAKU_PACE_MAX_MS")

    if settings.http_timeout <= 0:
        raise RuntimeError("HTTP_TIMEOUT must be positive")

    return None
