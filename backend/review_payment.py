"""
支付审核脚本
---------------------------------
功能：
- 管理员在命令行查看待审核支付、审核通过或拒绝（不经过 HTTP 接口）

运行：
python backend/review_payment.py list
python backend/review_payment.py approve <支付ID>
python backend/review_payment.py reject <支付ID> [原因]
"""

import asyncio
import sys

from app.services.errors import PolyglotError
from app.services.notification_service import get_notification_service
from app.services.payment_service import PaymentService
from app.services.store import get_store
from app.utils.logger import log


def _service() -> PaymentService:
    return PaymentService(get_store(), get_notification_service())


async def list_pending():
    """列出所有待审核支付"""
    payments = await _service().list_pending()

    if not payments:
        log.info("暂无待审核支付")
        return

    log.info(f"\n待审核支付（共 {len(payments)} 笔）：")
    log.info("-" * 90)
    log.info(f"{'ID':<34} {'用户':<24} {'套餐':<10} {'积分':>6} {'金额':>10}")
    log.info("-" * 90)
    for p in payments:
        log.info(f"{p.id:<34} {(p.user_email or p.user_id):<24} {p.package_id:<10} {p.points:>6} {p.amount:>10}")


async def review(action: str, payment_id: str, reason: str | None = None) -> bool:
    """审核一笔支付"""
    service = _service()
    try:
        if action == "approve":
            payment = await service.approve(payment_id)
        else:
            payment = await service.reject(payment_id, reason)
    except PolyglotError as e:
        log.error(f"❌ {e.message}")
        return False
    finally:
        # 等待通知邮件发送完成后再退出
        await service.notifier.drain()

    log.info(f"✅ 支付 {payment.id}：{payment.status.value}")
    log.info(f"   用户：{payment.user_email or payment.user_id}")
    log.info(f"   积分：{payment.points}")
    return True


def print_usage():
    """打印使用说明"""
    print(__doc__)


async def main(argv: list[str]) -> int:
    if len(argv) < 2:
        print_usage()
        return 1

    command = argv[1]
    if command == "list":
        await list_pending()
        return 0
    if command in ("approve", "reject") and len(argv) >= 3:
        reason = " ".join(argv[3:]) or None
        ok = await review(command, argv[2], reason)
        return 0 if ok else 1

    print_usage()
    return 1


if __name__ == "__main__":
    sys.exit(asyncio.run(main(sys.argv)))
