"""
Sistema de Códigos de Erro Estruturados
Fornece mensagens padronizadas para usuários e administradores
"""

class ErrorCode:
    """Catálogo de códigos de erro com mensagens para usuário final e administrador"""

    # Validação de dados (1xxx)
    ERR_1001 = {
        "code": "ERR_1001",
        "admin_msg": "Dados de entrada inválidos",
        "user_msg": "Alguns campos estão inválidos. Revise os dados informados e tente novamente."
    }

    ERR_1002 = {
        "code": "ERR_1002",
        "admin_msg": "Nível de combustível fora do intervalo 0-100",
        "user_msg": "O nível de combustível deve ser um número inteiro entre 0 e 100."
    }

    ERR_1003 = {
        "code": "ERR_1003",
        "admin_msg": "Cancelamento sem motivo",
        "user_msg": "Informe o motivo do cancelamento."
    }

    ERR_1004 = {
        "code": "ERR_1004",
        "admin_msg": "Automação incompleta (horário, dias ou viatura ausentes)",
        "user_msg": "A automação precisa de horário, ao menos um dia da semana e uma viatura antes de ser ativada."
    }

    ERR_1005 = {
        "code": "ERR_1005",
        "admin_msg": "Item com alteração sem observação",
        "user_msg": "Descreva a alteração de cada item marcado como 'Com alteração'."
    }

    # Autenticação / Permissão (2xxx)
    ERR_2001 = {
        "code": "ERR_2001",
        "admin_msg": "Credenciais inválidas na validação do checklist",
        "user_msg": "Usuário ou senha incorretos."
    }

    ERR_2002 = {
        "code": "ERR_2002",
        "admin_msg": "Perfil sem permissão para a operação",
        "user_msg": "Seu perfil não tem permissão para esta operação."
    }

    ERR_2003 = {
        "code": "ERR_2003",
        "admin_msg": "Limite de requisições excedido (rate limit)",
        "user_msg": "Muitas tentativas em pouco tempo. Aguarde um minuto e tente novamente."
    }

    # Banco de Dados (3xxx)
    ERR_3001 = {
        "code": "ERR_3001",
        "admin_msg": "Falha ao salvar dados no banco (commit failed)",
        "user_msg": "Erro ao salvar os dados. Tente novamente. Se persistir, contate o suporte."
    }

    ERR_3003 = {
        "code": "ERR_3003",
        "admin_msg": "Conexão com banco de dados perdida",
        "user_msg": "Falha na conexão com o servidor. Verifique sua internet e tente novamente."
    }

    ERR_3004 = {
        "code": "ERR_3004",
        "admin_msg": "Violação de integridade (duplicate key ou constraint)",
        "user_msg": "Este registro já existe. Atualize a lista e verifique."
    }

    # Fluxo de checklist e solicitações (5xxx)
    ERR_5001 = {
        "code": "ERR_5001",
        "admin_msg": "Registro não encontrado ou de outra unidade",
        "user_msg": "Registro não encontrado. Ele pode ter sido removido."
    }

    ERR_5002 = {
        "code": "ERR_5002",
        "admin_msg": "Checklist já finalizado",
        "user_msg": "Este checklist já foi finalizado."
    }

    ERR_5003 = {
        "code": "ERR_5003",
        "admin_msg": "Transição de status inválida",
        "user_msg": "Esta ação não é permitida no status atual. Atualize a lista e tente novamente."
    }

    ERR_5005 = {
        "code": "ERR_5005",
        "admin_msg": "Regra de negócio violada",
        "user_msg": "Não foi possível concluir a operação por uma regra do sistema."
    }

    # Sistema / Genérico (9xxx)
    ERR_9001 = {
        "code": "ERR_9001",
        "admin_msg": "Erro não categorizado (exceção genérica)",
        "user_msg": "Ocorreu um erro inesperado. Anote o código deste erro e entre em contato com o suporte."
    }

    ERR_9003 = {
        "code": "ERR_9003",
        "admin_msg": "Servidor inacessível (falha de rede no cliente)",
        "user_msg": "Sem conexão com o servidor. Verifique a rede e tente novamente."
    }

    # Código de domínio -> código do catálogo
    DOMAIN_CODES = {
        "VALIDATION_ERROR_COMBUSTIVEL_PERCENTUAL": "ERR_1002",
        "VALIDATION_ERROR_MOTIVO": "ERR_1003",
        "VALIDATION_ERROR_HORARIO": "ERR_1004",
        "VALIDATION_ERROR_DIAS_SEMANA": "ERR_1004",
        "AUTHENTICATION_FAILED": "ERR_2001",
        "PERMISSION_DENIED": "ERR_2002",
        "ALREADY_FINALIZED": "ERR_5002",
        "BUSINESS_RULE_STATUS_TRANSITION": "ERR_5003",
        "NETWORK_ERROR": "ERR_9003",
    }

    @staticmethod
    def get_error(exception_or_code):
        """
        Retorna objeto de erro baseado na exceção ou código.

        Args:
            exception_or_code: Exception object ou string com código (ex: "ERR_1001")

        Returns:
            dict com code, admin_msg, user_msg
        """
        if isinstance(exception_or_code, str):
            # Código direto
            return getattr(ErrorCode, exception_or_code, ErrorCode.ERR_9001)

        # Exceções de domínio carregam um código próprio
        code = getattr(exception_or_code, "code", None)
        if isinstance(code, str):
            if code in ErrorCode.DOMAIN_CODES:
                return getattr(ErrorCode, ErrorCode.DOMAIN_CODES[code])
            if code.endswith("_NOT_FOUND"):
                return ErrorCode.ERR_5001
            if code.startswith("VALIDATION_ERROR_ITENS"):
                return ErrorCode.ERR_1005
            if code.startswith("VALIDATION_ERROR"):
                return ErrorCode.ERR_1001
            if code.startswith("BUSINESS_RULE_"):
                return ErrorCode.ERR_5005

        # Análise da exceção
        error_str = str(exception_or_code).lower()

        if "too many requests" in error_str or "rate limit" in error_str:
            return ErrorCode.ERR_2003

        # Database
        if "duplicate" in error_str or "unique constraint" in error_str or "integrity" in error_str:
            return ErrorCode.ERR_3004
        if "database" in error_str or "connection" in error_str:
            return ErrorCode.ERR_3003
        if "commit" in error_str:
            return ErrorCode.ERR_3001

        # Default
        return ErrorCode.ERR_9001
