# scripts/sync_wifi_transactions.py
import argparse
import asyncio
import logging

from app.services.wifi_consistency import WifiConsistencySync


async def sync(*, user_id: int | None) -> int:
    scope = f"user_id={user_id}" if user_id is not None else "all users"
    print(f"[wifi-sync] starting consistency sync ({scope})")

    reports = await WifiConsistencySync().run(user_id=user_id)

    failed = 0
    for report in reports:
        if report.error:
            failed += 1
            print(f"[wifi-sync] user={report.user_id} ERROR: {report.error}")
            continue
        print(
            f"[wifi-sync] user={report.user_id} sessions={report.total_sessions} "
            f"duration={report.total_duration}s session_points={report.total_session_points} "
            f"created_transactions={report.created_transactions}"
        )
        for field, correction in report.corrections.items():
            print(f"[wifi-sync]   {field}: {correction.old} -> {correction.new}")

    print(f"[wifi-sync] done users={len(reports)} failed={failed}")
    return 1 if failed else 0


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Recria entradas de ledger faltantes e corrige os contadores WiFi dos usuários."
    )
    parser.add_argument(
        "--user-id",
        type=int,
        default=None,
        help="Sincroniza só este usuário (padrão: todos).",
    )
    return parser.parse_args()


def main() -> None:
    logging.basicConfig(level=logging.INFO, format="%(levelname)s [%(name)s] %(message)s")
    args = parse_args()
    raise SystemExit(asyncio.run(sync(user_id=args.user_id)))


if __name__ == "__main__":
    main()
