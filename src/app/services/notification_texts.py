"""Textos das mensagens enviadas ao usuário (texto puro, sem parse_mode)."""

from __future__ import annotations

from decimal import Decimal

from app.domain.transaction import TransactionStatus


def format_brl(amount: Decimal | float | int) -> str:
    """Formata valor em reais no padrão brasileiro (1.234,56)."""
    quantized = Decimal(str(amount)).quantize(Decimal("0.01"))
    integer, _, cents = f"{quantized:,.2f}".partition(".")
    return f"{integer.replace(',', '.')},{cents}"


def paid_message(amount: Decimal, settlement_reference: str | None) -> str:
    text = (
        f"✅ Pagamento Pix de R$ {format_brl(amount)} confirmado!\n"
        "Seus DePix foram enviados.\n"
    )
    if settlement_reference:
        return text + f"ID da Transação Liquid: {settlement_reference}"
    return text + "ID da Transação Liquid não fornecido no momento."


def failed_message(amount: Decimal, processor_status: str | None) -> str:
    return (
        f"❌ Falha no pagamento Pix de R$ {format_brl(amount)}.\n"
        f"Status da API DePix: {processor_status or 'desconhecido'}. "
        "Se o valor foi debitado, entre em contato com o suporte."
    )


def expired_message(amount: Decimal) -> str:
    return (
        f"O QR Code referente à compra de R$ {format_brl(amount)} expirou. "
        "Por favor, gere um novo se desejar continuar."
    )


def reminder_message(support_contact: str) -> str:
    return (
        "Lembrete: Após o pagamento do Pix, seus DePix podem levar alguns "
        "instantes (geralmente até 2 minutos) para serem creditados em sua "
        "carteira Liquid.\n\n"
        "Se você já pagou e está aguardando, um pouco mais de paciência! "
        "Se houver qualquer problema ou demora excessiva, contate nosso "
        f"suporte: {support_contact}"
    )


def followup_message(support_contact: str, community_group: str) -> str:
    return (
        "Obrigado por usar o Atlas Bridge! Ficou alguma dúvida? "
        f"Fale com o suporte em {support_contact} ou participe da nossa "
        f"comunidade: {community_group}"
    )


def terminal_message(
    status: TransactionStatus,
    amount: Decimal,
    *,
    settlement_reference: str | None = None,
    processor_status: str | None = None,
) -> str:
    """Mensagem única de status terminal.

    Raises:
        ValueError: Se o status não for terminal.
    """
    if status == TransactionStatus.PAID:
        return paid_message(amount, settlement_reference)
    if status == TransactionStatus.FAILED:
        return failed_message(amount, processor_status)
    if status == TransactionStatus.EXPIRED:
        return expired_message(amount)
    raise ValueError(f"status não terminal: {status}")
