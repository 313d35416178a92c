#!/usr/bin/env python3
import json
import os
import sys

from vp_authorizer.config import DeployConfig
from vp_authorizer.errors import AuthorizerError
from vp_authorizer.services import apply_schema_and_policies, validate_assets


def main() -> None:
    config = DeployConfig.from_env()
    validate_only = os.getenv('VALIDATE_ONLY', '').strip().lower() in {'1', 'true', 'yes'}

    try:
        if validate_only:
            report = validate_assets(
                config.schema_file,
                config.policy_dir,
                canary_path=config.canary_file,
                mode=config.action_group_enforcement,
            )
            result = report.to_dict()
        else:
            if not config.policy_store_id:
                print('POLICY_STORE_ID is not set; nothing to deploy.')
                sys.exit(1)
            result = apply_schema_and_policies(config)
    except AuthorizerError as e:
        print(f"Authorizer deployment failed: {e}")
        sys.exit(1)

    for warning in result.get('warnings', []):
        print(f"WARNING: {warning}")
    print(json.dumps(result, indent=2, default=str))
    print('Done.')


if __name__ == '__main__':
    main()
