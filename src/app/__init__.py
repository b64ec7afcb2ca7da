"""App — reconciliação Pix -> DePix: orquestração, casos de uso e infraestrutura.

Subpastas:
- bootstrap/: composition root (factories, inicialização, wiring)
- domain/: modelos (Transaction, PaymentEvent)
- use_cases/: registro de cobrança e reconciliação do webhook
- services/: roteamento, encaminhamento e notificação
- jobs/: jobs diferidos (lembrete, expiração) e worker
- infra/: implementações concretas de IO (Firestore, Redis, Telegram, HTTP)
- protocols/: contratos/interfaces
- observability/: correlation_id e métricas em logs

Padrão: app executa; api adapta; config configura; utils apoia.
"""
