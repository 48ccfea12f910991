"""
邮件通知服务
---------------------------------
功能：
- 通过 SMTP 发送 HTML 邮件（smtplib 在线程中执行，不阻塞事件循环）
- 注册、支付提交、支付通过/拒绝时通知管理员或用户
- dispatch() 以后台任务方式发送：失败只记录日志，不影响触发它的业务操作

使用：
- notifier = get_notification_service()
- notifier.dispatch(notifier.notify_user_payment_approved(payment))
- 应用关闭前调用 await notifier.drain() 等待未完成的邮件
"""

from email.message import EmailMessage
from html import escape
from typing import Awaitable
import asyncio
import logging
import smtplib

from ..config.settings import (
    SMTP_HOST,
    SMTP_PORT,
    EMAIL_USER,
    EMAIL_PASS,
    EMAIL_FROM,
    ADMIN_EMAIL,
    FRONTEND_BASE_URL,
)
from ..models.payment import PaymentRecord
from ..models.user import User
from ..utils.phone_utils import normalize_phone_number
from ..utils.time_utils import parse_iso

logger = logging.getLogger(__name__)

DEFAULT_REJECT_REASON = "转账凭证无效或与套餐金额不符"


def format_rupiah(amount: int) -> str:
    """25000 -> Rp 25.000"""
    return "Rp " + f"{amount:,}".replace(",", ".")


class NotificationService:
    """邮件通知服务"""

    def __init__(
        self,
        host: str = SMTP_HOST,
        port: int = SMTP_PORT,
        user: str = EMAIL_USER,
        password: str = EMAIL_PASS,
        sender: str = EMAIL_FROM,
        admin_email: str = ADMIN_EMAIL,
    ):
        self.host = host
        self.port = port
        self.user = user
        self.password = password
        self.sender = sender
        self.admin_email = admin_email
        # 未完成的后台发送任务（保持引用，防止被回收）
        self._tasks: set[asyncio.Task] = set()

    @property
    def configured(self) -> bool:
        return bool(self.user and self.password)

    # ------------------------------------------------------------------
    # 发送
    # ------------------------------------------------------------------

    async def send_email(self, to: str, subject: str, html: str) -> tuple[bool, str]:
        """
        发送一封 HTML 邮件

        Returns:
            (是否成功, 错误信息或成功消息)
        """
        if not to:
            return False, "收件人为空"
        if not self.configured:
            logger.warning(f"未配置 EMAIL_USER/EMAIL_PASS，跳过邮件：{subject} -> {to}")
            return False, "邮件服务未配置"

        msg = EmailMessage()
        msg["From"] = self.sender
        msg["To"] = to
        msg["Subject"] = subject
        msg.set_content("请使用支持 HTML 的邮件客户端查看此邮件。")
        msg.add_alternative(html, subtype="html")

        try:
            await asyncio.to_thread(self._send, msg)
        except (smtplib.SMTPException, OSError) as e:
            logger.exception(f"邮件发送失败: {to}, 主题: {subject}")
            return False, f"邮件发送失败: {e}"

        logger.info(f"邮件已发送: {to}, 主题: {subject}")
        return True, "邮件发送成功"

    def _send(self, msg: EmailMessage) -> None:
        with smtplib.SMTP(self.host, self.port, timeout=30) as smtp:
            smtp.starttls()
            smtp.login(self.user, self.password)
            smtp.send_message(msg)

    def dispatch(self, notification: Awaitable) -> asyncio.Task:
        """后台发送，不等待结果"""
        task = asyncio.create_task(self._guard(notification))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    @staticmethod
    async def _guard(notification: Awaitable) -> None:
        try:
            await notification
        except Exception:
            logger.exception("通知任务异常")

    async def drain(self) -> None:
        """等待所有未完成的后台通知"""
        if self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    # ------------------------------------------------------------------
    # 业务通知
    # ------------------------------------------------------------------

    async def notify_admin_new_user(self, user: User) -> tuple[bool, str]:
        """新用户注册 -> 管理员"""
        wa_number = normalize_phone_number(user.phone)
        wa_link = ""
        if wa_number:
            wa_link = (
                f'<p><a href="https://wa.me/{wa_number}" '
                f'style="background:#25D366;color:#fff;padding:12px 28px;border-radius:8px;'
                f'text-decoration:none;font-weight:bold;">💬 WhatsApp 联系</a></p>'
            )
        html = f"""
            <h2>🎉 新用户注册</h2>
            <p><strong>姓名：</strong>{escape(user.name)}</p>
            <p><strong>邮箱：</strong>{escape(user.email)}</p>
            <p><strong>手机号：</strong>{escape(user.phone)}</p>
            <p><strong>时间：</strong>{parse_iso(user.created_at):%Y-%m-%d %H:%M} UTC</p>
            {wa_link}
        """
        return await self.send_email(self.admin_email, "[新用户] PolyglotQuest 用户注册", html)

    async def notify_admin_new_payment(self, payment: PaymentRecord) -> tuple[bool, str]:
        """新支付待审核 -> 管理员"""
        html = f"""
            <h2>💳 新支付待审核</h2>
            <p><strong>用户：</strong>{escape(payment.user_name or "")} ({escape(payment.user_email or "")})</p>
            <p><strong>套餐：</strong>{escape(payment.package_name or payment.package_id)} - {payment.points} 积分</p>
            <p><strong>金额：</strong>{format_rupiah(payment.amount)}</p>
            <p><strong>支付方式：</strong>{escape(payment.method or "-")}</p>
            <p><strong>时间：</strong>{parse_iso(payment.created_at):%Y-%m-%d %H:%M} UTC</p>
            <p><strong>转账凭证：</strong><a href="{FRONTEND_BASE_URL}{escape(payment.proof_image)}">查看凭证</a></p>
            <p><a href="{FRONTEND_BASE_URL}/admin.html">打开管理后台</a></p>
        """
        return await self.send_email(self.admin_email, "[支付] 新支付待审核", html)

    async def notify_user_payment_received(self, payment: PaymentRecord) -> tuple[bool, str]:
        """支付已提交 -> 用户"""
        html = f"""
            <h2>✅ 已收到您的支付</h2>
            <p>您好 <strong>{escape(payment.user_name or "")}</strong>，</p>
            <p>我们已收到您的支付凭证，正在审核中。</p>
            <p><strong>套餐：</strong>{escape(payment.package_name or payment.package_id)}</p>
            <p><strong>积分：</strong>{payment.points} 💎</p>
            <p><strong>金额：</strong>{format_rupiah(payment.amount)}</p>
            <p><strong>状态：</strong>待审核</p>
            <p>管理员将在 24 小时内完成审核，通过后积分会自动到账。</p>
        """
        return await self.send_email(payment.user_email or "", "✅ 支付已提交 - PolyglotQuest", html)

    async def notify_user_payment_approved(self, payment: PaymentRecord) -> tuple[bool, str]:
        """支付通过 -> 用户"""
        html = f"""
            <h2>🎉 支付审核通过！</h2>
            <p><strong>套餐：</strong>{escape(payment.package_name or payment.package_id)}</p>
            <p><strong>到账积分：</strong>+{payment.points} 💎</p>
            <p><strong>金额：</strong>{format_rupiah(payment.amount)}</p>
            <p><strong>支付方式：</strong>{escape(payment.method or "-")}</p>
            <p>积分已存入您的账户，可以立即使用。</p>
            <p><a href="{FRONTEND_BASE_URL}/game.html">🚀 开始学习</a></p>
        """
        return await self.send_email(payment.user_email or "", "✅ 支付审核通过 - PolyglotQuest", html)

    async def notify_user_payment_rejected(self, payment: PaymentRecord) -> tuple[bool, str]:
        """支付被拒绝 -> 用户"""
        reason = payment.reject_reason or DEFAULT_REJECT_REASON
        html = f"""
            <h2>❌ 支付未通过审核</h2>
            <p><strong>套餐：</strong>{escape(payment.package_name or payment.package_id)}</p>
            <p><strong>金额：</strong>{format_rupiah(payment.amount)}</p>
            <p><strong>原因：</strong>{escape(reason)}</p>
            <ul>
                <li>请确认转账金额与套餐价格一致</li>
                <li>请上传清晰完整的转账凭证</li>
            </ul>
            <p><a href="{FRONTEND_BASE_URL}/game.html">重新提交</a></p>
        """
        return await self.send_email(payment.user_email or "", "❌ 支付未通过 - PolyglotQuest", html)


# 全局单例
_notification_service: NotificationService | None = None


def get_notification_service() -> NotificationService:
    """
    获取邮件通知服务单例

    Returns:
        NotificationService 实例
    """
    global _notification_service
    if _notification_service is None:
        _notification_service = NotificationService()
    return _notification_service
